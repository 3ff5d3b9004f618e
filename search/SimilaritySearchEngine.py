# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-24
# Description: SimilaritySearchEngine
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import numpy as np

import settings
from catalog.CallCatalog import CallCatalog
from catalog.types import CallRecord
from embedding.EmbeddingRecord import ContentType
from search.similarity import match_strength, sort_results
from search.types import SearchFilters, SearchResult
from utility.logging_utils import get_class_logger
from vectorstore.CallVectorStore import CallVectorStore


def apply_post_filters(results: Iterable[SearchResult], filters: SearchFilters) -> List[SearchResult]:
    """Filters that need the joined call metadata (sentiment, outcome, language, flags)."""
    out = list(results)
    if filters.sentiment:
        out = [r for r in out if r.sentiment in filters.sentiment]
    if filters.outcome:
        out = [r for r in out if r.outcome in filters.outcome]
    if filters.language:
        out = [r for r in out if r.language in filters.language]
    if filters.has_red_flags is not None:
        out = [r for r in out if r.has_red_flags == filters.has_red_flags]
    if filters.has_action_items is not None:
        out = [r for r in out if r.has_action_items == filters.has_action_items]
    return out


def make_preview(text: Optional[str], max_chars: int) -> str:
    text = text or ""
    return text[:max_chars] + "..." if len(text) > max_chars else text


class SimilaritySearchEngine:
    """
    Nearest-neighbour search over stored call embeddings.

      - ranking is delegated to the vector store (cosine)
      - matches at or below the threshold are dropped before the metadata join
      - date/duration bounds are applied by the catalog fetch
      - sentiment/outcome/language/flags are a post-filter on the joined rows
    """

    def __init__(
        self,
        *,
        store: CallVectorStore,
        catalog: CallCatalog,
        default_limit: int = settings.SEARCH_DEFAULTS["limit"],
        max_limit: int = settings.SEARCH_DEFAULTS["max_limit"],
        default_threshold: float = settings.SEARCH_DEFAULTS["threshold"],
        preview_chars: int = settings.SEARCH_DEFAULTS["preview_chars"],
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.default_threshold = default_threshold
        self.preview_chars = preview_chars
        self.logger = logger or get_class_logger(self.__class__)

    def clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            limit = self.default_limit
        return max(1, min(int(limit), self.max_limit))

    def search(
        self,
        query_vector: np.ndarray,
        owner_id: str,
        *,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
        filters: Optional[SearchFilters] = None,
        content_type: ContentType = ContentType.TRANSCRIPT,
        exclude_ids: Iterable[str] = (),
    ) -> List[SearchResult]:
        limit = self.clamp_limit(limit)
        threshold = self.default_threshold if threshold is None else float(threshold)
        excluded = set(exclude_ids)

        matches = self.store.query(
            query_vector,
            owner_id=owner_id,
            n_results=limit + len(excluded),
            content_type=content_type,
        )

        best: Dict[str, float] = {}
        for m in matches:
            if m.entity_id in excluded or m.similarity <= threshold:
                continue
            if m.similarity > best.get(m.entity_id, float("-inf")):
                best[m.entity_id] = m.similarity

        self.logger.info(
            "Vector stage: %d matches, %d above threshold %.2f (owner=%s)",
            len(matches),
            len(best),
            threshold,
            owner_id,
        )
        if not best:
            return []

        calls = self.catalog.fetch_calls(best.keys(), owner_id, filters)
        results = [self._to_result(call, best[call.call_id]) for call in calls]

        if filters is not None and filters.needs_post_filter:
            before = len(results)
            results = apply_post_filters(results, filters)
            self.logger.debug("Post-filter kept %d/%d results", len(results), before)

        return sort_results(results)[:limit]

    def _to_result(self, call: CallRecord, similarity: float) -> SearchResult:
        return SearchResult(
            call_id=call.call_id,
            similarity=match_strength(similarity),
            transcript_preview=make_preview(call.transcript_text, self.preview_chars),
            filename=call.filename,
            call_time=call.call_time,
            duration=call.duration,
            sentiment=call.sentiment,
            outcome=call.outcome,
            language=call.language,
            has_red_flags=call.has_red_flags,
            has_action_items=call.has_action_items,
        )
