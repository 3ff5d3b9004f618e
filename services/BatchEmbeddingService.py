# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-26
# Description: BatchEmbeddingService.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

import settings
from embedding.EmbeddingErrors import BatchTooLargeError, CallSearchError, ValidationError
from embedding.EmbeddingRecord import ContentType, OperationType
from services.EmbeddingService import EmbeddingService, GenerateEmbeddingResult
from utility.logging_utils import get_class_logger


@dataclass(frozen=True)
class BatchItem:
    """One unit of batch work. With text=None the content is read from the call catalog."""
    entity_id: str
    owner_id: str
    text: Any = None
    content_type: ContentType = ContentType.TRANSCRIPT
    force_regenerate: bool = False


@dataclass(frozen=True)
class BatchItemResult:
    entity_id: str
    success: bool
    embedding_id: Optional[str] = None
    cached: bool = False
    token_count: int = 0
    cost: float = 0.0
    error: Optional[str] = None
    error_type: Optional[str] = None


@dataclass(frozen=True)
class BatchSummary:
    total: int
    success: int
    cached: int
    failed: int


@dataclass(frozen=True)
class BatchResult:
    results: List[BatchItemResult]
    summary: BatchSummary
    total_cost: float = 0.0
    total_tokens: int = 0


class BatchEmbeddingService:
    """
    Runs EmbeddingService over a list of items, strictly one after another with a
    fixed pause between items. A failing item is recorded and the batch moves on.
    """

    def __init__(
        self,
        *,
        embedding_service: EmbeddingService,
        max_batch_size: int = settings.MAX_BATCH_SIZE,
        pacing_ms: int = settings.BATCH_PACING_MS,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self.embedding_service = embedding_service
        self.max_batch_size = max_batch_size
        self.pacing_s = max(0, pacing_ms) / 1000.0
        self._sleep = sleep
        self.logger = logger or get_class_logger(self.__class__)

    def run_batch(self, items: Sequence[BatchItem]) -> BatchResult:
        items = list(items or ())
        if not items:
            raise ValidationError("Batch must contain at least one item")
        if len(items) > self.max_batch_size:
            raise BatchTooLargeError(len(items), self.max_batch_size)

        self.logger.info("Starting embedding batch of %d items", len(items))
        results: List[BatchItemResult] = []

        for idx, item in enumerate(items):
            results.append(self._process(item))
            if idx < len(items) - 1 and self.pacing_s > 0:
                self._sleep(self.pacing_s)

        batch = self._summarize(results)
        self.logger.info(
            "Batch finished: total=%d success=%d cached=%d failed=%d tokens=%d cost=%.6f",
            batch.summary.total,
            batch.summary.success,
            batch.summary.cached,
            batch.summary.failed,
            batch.total_tokens,
            batch.total_cost,
        )
        return batch

    def run_for_calls(
        self,
        call_ids: Sequence[str],
        owner_id: str,
        content_type: ContentType = ContentType.TRANSCRIPT,
        *,
        force_regenerate: bool = False,
    ) -> BatchResult:
        items = [
            BatchItem(
                entity_id=call_id,
                owner_id=owner_id,
                content_type=ContentType(content_type),
                force_regenerate=force_regenerate,
            )
            for call_id in (call_ids or ())
        ]
        return self.run_batch(items)

    # -------------------------------------------------------------------------
    def _process(self, item: BatchItem) -> BatchItemResult:
        op = OperationType.REGENERATE if item.force_regenerate else OperationType.BATCH
        try:
            if item.text is None:
                res = self.embedding_service.generate_for_call(
                    item.entity_id,
                    item.owner_id,
                    item.content_type,
                    force_regenerate=item.force_regenerate,
                    operation_type=op,
                )
            else:
                res = self.embedding_service.generate_embedding(
                    item.entity_id,
                    item.owner_id,
                    item.text,
                    item.content_type,
                    force_regenerate=item.force_regenerate,
                    operation_type=op,
                )
        except CallSearchError as e:
            self.logger.warning("Batch item '%s' failed: %s", item.entity_id, e)
            return BatchItemResult(
                entity_id=item.entity_id,
                success=False,
                error=e.message,
                error_type=type(e).__name__,
            )
        except Exception as e:
            self.logger.exception("Batch item '%s' failed unexpectedly", item.entity_id)
            return BatchItemResult(
                entity_id=item.entity_id,
                success=False,
                error=f"Internal error: {e}",
                error_type=type(e).__name__,
            )

        return self._to_item_result(item.entity_id, res)

    @staticmethod
    def _to_item_result(entity_id: str, res: GenerateEmbeddingResult) -> BatchItemResult:
        return BatchItemResult(
            entity_id=entity_id,
            success=True,
            embedding_id=res.embedding_id,
            cached=res.cached,
            token_count=0 if res.cached else res.token_count,
            cost=0.0 if res.cached else float(res.cost or 0.0),
        )

    @staticmethod
    def _summarize(results: List[BatchItemResult]) -> BatchResult:
        ok = [r for r in results if r.success]
        return BatchResult(
            results=results,
            summary=BatchSummary(
                total=len(results),
                success=len(ok),
                cached=sum(1 for r in ok if r.cached),
                failed=len(results) - len(ok),
            ),
            total_cost=sum(r.cost for r in ok),
            total_tokens=sum(r.token_count for r in ok),
        )
