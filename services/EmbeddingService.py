# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-26
# Description: EmbeddingService.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import settings
from catalog.CallCatalog import TOO_SHORT_PLACEHOLDER, CallCatalog
from catalog.types import CallRecord
from embedding.CallEmbedder import CallEmbedder
from embedding.EmbeddingErrors import EmptyContentError, NotFoundError, ValidationError
from embedding.EmbeddingRecord import ContentType, EmbeddingRecord, OperationType
from ledger.UsageLedger import UsageLedger
from normalizer.ContentFingerprinter import content_hash, is_expired
from normalizer.ContentNormalizer import ContentNormalizer
from utility.logging_utils import get_class_logger
from vectorstore.CallVectorStore import CallVectorStore


@dataclass(frozen=True)
class GenerateEmbeddingResult:
    embedding_id: str
    cached: bool
    content_hash: str
    token_count: int = 0
    cost: Optional[float] = None


class EmbeddingService:
    """
    Single-item pipeline:
      normalize -> hash -> cache check -> embed -> upsert -> usage ledger

    The cache check and the upsert are not one atomic step. Two concurrent
    requests for the same (call, content type) may both call the provider; the
    store's keyed upsert keeps a single row (last write wins).
    """

    def __init__(
        self,
        *,
        embedder: CallEmbedder,
        store: CallVectorStore,
        ledger: UsageLedger,
        normalizer: ContentNormalizer | None = None,
        catalog: CallCatalog | None = None,
        model_version: int = settings.EMBEDDING_MODEL_VERSION,
        cache_max_age_days: int = settings.CACHE_MAX_AGE_DAYS,
        logger: logging.Logger | None = None,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.ledger = ledger
        self.normalizer = normalizer or ContentNormalizer()
        self.catalog = catalog
        self.model_version = model_version
        self.cache_max_age_days = cache_max_age_days
        self.logger = logger or get_class_logger(self.__class__)

    # -------------------------------------------------------------------------
    def generate_embedding(
        self,
        entity_id: str,
        owner_id: str,
        text: Any,
        content_type: ContentType = ContentType.TRANSCRIPT,
        *,
        force_regenerate: bool = False,
        operation_type: Optional[OperationType] = None,
    ) -> GenerateEmbeddingResult:
        content_type = ContentType(content_type)

        # Rejected here, before hashing or any provider call
        normalized = self.normalizer.normalize(text, content_type)
        digest = content_hash(normalized)

        existing = self.store.get_current(entity_id, content_type)
        if existing is not None and existing.owner_id != owner_id:
            raise NotFoundError("Call not found or access denied")

        expired = existing is not None and is_expired(existing.generated_at, self.cache_max_age_days)

        if existing is not None and not force_regenerate and not expired and existing.content_hash == digest:
            self.logger.info("Embedding cache hit for '%s' (%s)", entity_id, content_type.value)
            return GenerateEmbeddingResult(
                embedding_id=existing.embedding_id,
                cached=True,
                content_hash=digest,
                token_count=existing.token_count,
            )

        if expired:
            self.logger.info("Cached embedding for '%s' exceeded %d days, regenerating", entity_id, self.cache_max_age_days)

        result = self.embedder.generate(normalized)

        now = datetime.now(timezone.utc)
        record = EmbeddingRecord(
            entity_id=entity_id,
            owner_id=owner_id,
            vector=result.vector,
            model_name=result.model_name,
            model_version=self._next_model_version(existing, result.model_name),
            content_type=content_type,
            content_hash=digest,
            token_count=result.token_count,
            generated_at=now,
            created_at=existing.created_at if existing is not None else now,
        )
        embedding_id = self.store.upsert(record)

        if operation_type is None:
            operation_type = OperationType.REGENERATE if (force_regenerate or expired) else OperationType.GENERATE

        cost = self.ledger.cost_for(result.token_count)
        self._record_usage(record, operation_type)

        self.logger.info(
            "Embedding generated for '%s' (%s): tokens=%d cost=%.6f",
            entity_id,
            content_type.value,
            result.token_count,
            cost,
        )
        return GenerateEmbeddingResult(
            embedding_id=embedding_id,
            cached=False,
            content_hash=digest,
            token_count=result.token_count,
            cost=cost,
        )

    def generate_for_call(
        self,
        call_id: str,
        owner_id: str,
        content_type: ContentType = ContentType.TRANSCRIPT,
        *,
        force_regenerate: bool = False,
        operation_type: Optional[OperationType] = None,
    ) -> GenerateEmbeddingResult:
        """Look the call up in the catalog and embed its current content."""
        if self.catalog is None:
            raise RuntimeError("EmbeddingService was built without a CallCatalog")

        call = self.catalog.get_call(call_id, owner_id)
        if call is None:
            raise NotFoundError("Call not found or access denied")

        text = self.content_for(call, ContentType(content_type))
        return self.generate_embedding(
            call_id,
            owner_id,
            text,
            content_type,
            force_regenerate=force_regenerate,
            operation_type=operation_type,
        )

    def content_for(self, call: CallRecord, content_type: ContentType) -> str:
        if call.transcription_status is None and call.transcript_text is None:
            raise NotFoundError("Transcript not found for this call")
        if call.transcription_status not in (None, "completed"):
            raise ValidationError(f"Transcript not ready. Status: {call.transcription_status}")

        transcript = call.transcript_text
        if transcript is not None and transcript.strip() == TOO_SHORT_PLACEHOLDER:
            raise EmptyContentError("Transcript text is empty or call too short")

        if content_type is ContentType.SUMMARY:
            return call.summary
        if content_type is ContentType.COMBINED:
            return self.normalizer.combine(transcript, call.summary)
        return transcript

    def purge_older_than(self, max_age_days: int, owner_id: Optional[str] = None) -> int:
        """Retention sweep: drop embeddings generated more than max_age_days ago."""
        if max_age_days < 0:
            raise ValidationError("max_age_days must be >= 0")
        cutoff = datetime.now(timezone.utc) - timedelta(days=max_age_days)
        return self.store.delete_older_than(cutoff, owner_id=owner_id)

    # -------------------------------------------------------------------------
    def _next_model_version(self, existing: Optional[EmbeddingRecord], model_name: str) -> int:
        if existing is None:
            return self.model_version
        if existing.model_name != model_name:
            return existing.model_version + 1
        return existing.model_version

    def _record_usage(self, record: EmbeddingRecord, operation_type: OperationType) -> None:
        # Ledger problems must never undo or fail the embedding write
        try:
            self.ledger.record(
                owner_id=record.owner_id,
                entity_id=record.entity_id,
                token_count=record.token_count,
                model_name=record.model_name,
                operation_type=operation_type,
            )
        except Exception as e:
            self.logger.warning("Failed to log embedding cost for '%s': %s", record.entity_id, e)
