# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-26
# Description: SearchService.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
import time
from typing import Any, List, Optional, Sequence

import numpy as np

import settings
from catalog.CallCatalog import CallCatalog
from embedding.CallEmbedder import CallEmbedder
from embedding.EmbeddingErrors import EmptyContentError, InvalidResponseError, NotFoundError, ValidationError
from embedding.EmbeddingRecord import ContentType, as_vector
from embedding.QueryEmbeddingCache import QueryEmbeddingCache
from ledger.SearchQueryLog import SearchQueryLog
from normalizer.ContentFingerprinter import content_hash
from normalizer.ContentNormalizer import ContentNormalizer
from search.HybridRanker import HybridRanker
from search.SimilaritySearchEngine import SimilaritySearchEngine
from search.types import SearchFilters, SearchResponse, SearchResult
from utility.logging_utils import get_class_logger
from vectorstore.CallVectorStore import CallVectorStore


class SearchService:
    """
    Semantic search over one owner's calls.

    Text queries are embedded (through an in-process cache), ranked by the
    vector engine and, when hybrid search is on, boosted by keyword matches.
    """

    def __init__(
        self,
        *,
        embedder: CallEmbedder,
        engine: SimilaritySearchEngine,
        catalog: CallCatalog,
        store: CallVectorStore,
        ranker: HybridRanker | None = None,
        normalizer: ContentNormalizer | None = None,
        query_cache: QueryEmbeddingCache | None = None,
        query_log: SearchQueryLog | None = None,
        hybrid_enabled: bool = settings.HYBRID_SEARCH_ENABLED,
        similar_limit: int = settings.SEARCH_DEFAULTS["similar_limit"],
        logger: logging.Logger | None = None,
    ) -> None:
        self.embedder = embedder
        self.engine = engine
        self.catalog = catalog
        self.store = store
        self.ranker = ranker or HybridRanker()
        self.normalizer = normalizer or ContentNormalizer()
        self.query_cache = query_cache or QueryEmbeddingCache()
        self.query_log = query_log
        self.hybrid_enabled = hybrid_enabled
        self.similar_limit = similar_limit
        self.logger = logger or get_class_logger(self.__class__)

    # -------------------------------------------------------------------------
    def search(
        self,
        owner_id: str,
        *,
        query_text: Optional[str] = None,
        query_vector: Optional[Sequence[float]] = None,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
        filters: Optional[SearchFilters] = None,
        content_type: ContentType = ContentType.TRANSCRIPT,
    ) -> SearchResponse:
        start = time.perf_counter()

        if query_text is None and query_vector is None:
            raise ValidationError("Either query text or a query vector is required")
        if query_text is not None and (not isinstance(query_text, str) or not query_text.strip()):
            raise EmptyContentError("Query text is empty")
        if threshold is not None and not (0.0 <= float(threshold) <= 1.0):
            raise ValidationError("threshold must be between 0 and 1")

        if query_vector is not None:
            vector = self._coerce_vector(query_vector)
        else:
            vector = self.embed_query(query_text)

        results = self.engine.search(
            vector,
            owner_id,
            limit=limit,
            threshold=threshold,
            filters=filters,
            content_type=content_type,
        )

        keyword_fallback = False
        hybrid = bool(query_text) and self.hybrid_enabled
        if hybrid and results:
            matches = self.catalog.keyword_search(owner_id, query_text, [r.call_id for r in results])
            keyword_fallback = not matches.ok
            results = self.ranker.boost(results, matches)

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        self._log_query(
            owner_id=owner_id,
            query_text=query_text or "<vector>",
            query_type="hybrid" if hybrid else "semantic",
            results=results,
            elapsed_ms=elapsed_ms,
            filters=filters,
        )
        self.logger.info("Search for owner '%s' returned %d results in %d ms", owner_id, len(results), elapsed_ms)
        return SearchResponse(
            results=results,
            search_time_ms=elapsed_ms,
            query=query_text,
            keyword_fallback=keyword_fallback,
        )

    def find_similar_to(
        self,
        entity_id: str,
        owner_id: str,
        *,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
        content_type: ContentType = ContentType.TRANSCRIPT,
    ) -> SearchResponse:
        """Calls most similar to an already-embedded call, excluding the call itself."""
        start = time.perf_counter()

        record = self.store.get_current(entity_id, content_type, owner_id=owner_id)
        if record is None:
            raise NotFoundError("Embedding not found for this call")

        results = self.engine.search(
            record.vector,
            owner_id,
            limit=self.similar_limit if limit is None else limit,
            threshold=threshold,
            content_type=content_type,
            exclude_ids=(entity_id,),
        )

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        self._log_query(
            owner_id=owner_id,
            query_text=f"similar:{entity_id}",
            query_type="similar",
            results=results,
            elapsed_ms=elapsed_ms,
        )
        return SearchResponse(results=results, search_time_ms=elapsed_ms)

    def embed_query(self, query_text: str) -> np.ndarray:
        normalized = self.normalizer.normalize(query_text, ContentType.SUMMARY)
        key = content_hash(normalized)

        cached = self.query_cache.get(key)
        if cached is not None:
            self.logger.debug("Query embedding cache hit")
            return cached.vector

        result = self.embedder.generate(normalized)
        self.query_cache.put(key, result)
        return result.vector

    # -------------------------------------------------------------------------
    def _coerce_vector(self, values: Any) -> np.ndarray:
        try:
            return as_vector(values, self.embedder.dimensions)
        except InvalidResponseError as e:
            raise ValidationError(f"Invalid query vector: {e.message}") from e

    def _log_query(
        self,
        *,
        owner_id: str,
        query_text: str,
        query_type: str,
        results: List[SearchResult],
        elapsed_ms: int,
        filters: Optional[SearchFilters] = None,
    ) -> None:
        if self.query_log is None:
            return
        try:
            self.query_log.record(
                owner_id=owner_id,
                query_text=query_text,
                query_type=query_type,
                result_count=len(results),
                search_time_ms=elapsed_ms,
                filters=filters.to_dict() if filters is not None else None,
            )
        except Exception as e:
            self.logger.warning("Failed to log search query: %s", e)
