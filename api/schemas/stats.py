# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-27
# Description: stats.py
# -----------------------------------------------------------------------------
from typing import Dict, List, Optional

from pydantic import BaseModel

class CoverageResponse(BaseModel):
    total_calls: int
    embedded_calls: int
    coverage_percent: float
    missing_call_ids: List[str]

class UsageResponse(BaseModel):
    owner_id: str
    total_entities: int
    total_tokens: int
    total_cost: float
    last_generated: Optional[str] = None

class QueryStatsResponse(BaseModel):
    query: str
    search_count: int
    avg_result_count: float
    avg_search_time_ms: float
    last_searched: str

class DayCount(BaseModel):
    date: str
    count: int

class SearchAnalyticsResponse(BaseModel):
    owner_id: str
    total_searches: int
    unique_queries: int
    avg_result_count: float
    avg_search_time_ms: float
    success_rate: float
    searches_by_type: Dict[str, int]
    searches_by_day: List[DayCount]
    popular_queries: List[QueryStatsResponse]
    zero_result_queries: List[QueryStatsResponse]
