# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-27
# Description: CoverageService.py
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Optional

from catalog.CallCatalog import CallCatalog
from embedding.EmbeddingErrors import ValidationError
from embedding.EmbeddingRecord import ContentType
from ledger.SearchQueryLog import SearchAnalytics, SearchQueryLog
from ledger.UsageLedger import UsageLedger, UsageSummary
from utility.logging_utils import get_class_logger
from vectorstore.CallVectorStore import CallVectorStore


@dataclass(frozen=True)
class CoverageReport:
    total_entities: int
    embedded_entities: int
    coverage_percent: float
    missing_ids: List[str] = field(default_factory=list)


@dataclass
class CoverageService:
    """
    How much of an owner's catalog is searchable, what it has cost so far,
    and how search is being used.
    """

    catalog: CallCatalog
    store: CallVectorStore
    ledger: UsageLedger
    query_log: Optional[SearchQueryLog] = None
    logger: Any = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)

    def get_coverage(self, owner_id: str, content_type: Optional[ContentType] = None) -> CoverageReport:
        call_ids = self.catalog.list_call_ids(owner_id)

        # embeddings whose call has since left the catalog are not counted
        embedded = self.store.list_entity_ids(owner_id, content_type) & set(call_ids)
        missing = [cid for cid in call_ids if cid not in embedded]

        total = len(call_ids)
        percent = round(len(embedded) / total * 100, 2) if total else 0.0

        self.logger.info(
            "Coverage for owner '%s': %d/%d (%.2f%%)", owner_id, len(embedded), total, percent
        )
        return CoverageReport(
            total_entities=total,
            embedded_entities=len(embedded),
            coverage_percent=percent,
            missing_ids=missing,
        )

    def get_usage(self, owner_id: str) -> UsageSummary:
        return self.ledger.summarize(owner_id)

    def get_search_analytics(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 10,
    ) -> SearchAnalytics:
        if date_from and date_to and date_from > date_to:
            raise ValidationError("date_from must not be after date_to")
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        if self.query_log is None:
            return SearchAnalytics(owner_id=owner_id)
        return self.query_log.summarize(owner_id, date_from, date_to, limit)
