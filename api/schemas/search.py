# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-27
# Description: search.py
# -----------------------------------------------------------------------------
from dataclasses import asdict
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from search.types import SearchFilters, SearchResponse

class SearchFiltersRequest(BaseModel):
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    min_duration: Optional[int] = Field(None, ge=0)
    max_duration: Optional[int] = Field(None, ge=0)
    sentiment: List[str] = Field(default_factory=list)
    outcome: List[str] = Field(default_factory=list)
    language: List[str] = Field(default_factory=list)
    has_red_flags: Optional[bool] = None
    has_action_items: Optional[bool] = None

    def to_filters(self) -> SearchFilters:
        """Raises ValueError on unknown enum values or inverted ranges."""
        return SearchFilters(
            date_from=self.date_from,
            date_to=self.date_to,
            min_duration=self.min_duration,
            max_duration=self.max_duration,
            sentiment=frozenset(self.sentiment),
            outcome=frozenset(self.outcome),
            language=frozenset(self.language),
            has_red_flags=self.has_red_flags,
            has_action_items=self.has_action_items,
        )

class SemanticSearchRequest(BaseModel):
    query: Optional[str] = None
    query_vector: Optional[List[float]] = None
    limit: Optional[int] = None
    threshold: Optional[float] = None
    filters: Optional[SearchFiltersRequest] = None

class SearchHit(BaseModel):
    call_id: str
    similarity: float
    transcript_preview: str = ""
    filename: Optional[str] = None
    call_time: Optional[str] = None
    duration: Optional[int] = None
    sentiment: Optional[str] = None
    outcome: Optional[str] = None
    language: Optional[str] = None
    has_red_flags: bool = False
    has_action_items: bool = False

class SemanticSearchResponse(BaseModel):
    query: Optional[str] = None
    results: List[SearchHit]
    total_results: int
    search_time_ms: int
    keyword_fallback: bool = False

    @classmethod
    def from_search(cls, resp: SearchResponse) -> "SemanticSearchResponse":
        return cls(
            query=resp.query,
            results=[SearchHit(**asdict(r)) for r in resp.results],
            total_results=resp.total_results,
            search_time_ms=resp.search_time_ms,
            keyword_fallback=resp.keyword_fallback,
        )
