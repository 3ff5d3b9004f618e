# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-24
# Description: QueryEmbeddingCache
# -----------------------------------------------------------------------------
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import settings
from embedding.CallEmbedder import EmbeddingResult
from normalizer.ContentFingerprinter import is_expired


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    size: int
    hit_rate: float


class QueryEmbeddingCache:
    """
    In-process LRU of query-text embeddings, keyed by content hash.

    Repeated searches for the same text skip the provider call. Entries older
    than max_age_days are dropped on read.
    """

    def __init__(
        self,
        max_size: int = settings.QUERY_CACHE_SIZE,
        max_age_days: int = settings.CACHE_MAX_AGE_DAYS,
    ) -> None:
        self.max_size = max(1, max_size)
        self.max_age_days = max_age_days
        self._entries: "OrderedDict[str, tuple[EmbeddingResult, datetime]]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[EmbeddingResult]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            result, created_at = entry
            if is_expired(created_at, self.max_age_days):
                del self._entries[key]
                self._misses += 1
                return None

            self._entries.move_to_end(key)
            self._hits += 1
            return result

    def put(self, key: str, result: EmbeddingResult) -> None:
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            self._entries[key] = (result, datetime.now(timezone.utc))
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._entries),
                hit_rate=(self._hits / total) if total else 0.0,
            )
