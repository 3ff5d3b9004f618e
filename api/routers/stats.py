# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Description: stats.py
# -----------------------------------------------------------------------------
import logging
from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_coverage_service, get_owner_id
from api.errors import to_http_exception
from api.schemas.stats import CoverageResponse, DayCount, QueryStatsResponse, SearchAnalyticsResponse, UsageResponse
from embedding.EmbeddingErrors import CallSearchError
from services.CoverageService import CoverageService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/stats",
    tags=["stats"]
)

@router.get("/coverage", response_model=CoverageResponse)
def get_coverage(
    owner_id: str = Depends(get_owner_id),
    svc: CoverageService = Depends(get_coverage_service),
) -> CoverageResponse:
    logger.info("Getting embedding coverage for owner='%s'", owner_id)
    report = svc.get_coverage(owner_id)
    return CoverageResponse(
        total_calls=report.total_entities,
        embedded_calls=report.embedded_entities,
        coverage_percent=report.coverage_percent,
        missing_call_ids=report.missing_ids,
    )

@router.get("/usage", response_model=UsageResponse)
def get_usage(
    owner_id: str = Depends(get_owner_id),
    svc: CoverageService = Depends(get_coverage_service),
) -> UsageResponse:
    summary = svc.get_usage(owner_id)
    return UsageResponse(
        owner_id=summary.owner_id,
        total_entities=summary.total_entities,
        total_tokens=summary.total_tokens,
        total_cost=summary.total_cost,
        last_generated=summary.last_generated,
    )

@router.get("/search", response_model=SearchAnalyticsResponse)
def get_search_analytics(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    owner_id: str = Depends(get_owner_id),
    svc: CoverageService = Depends(get_coverage_service),
) -> SearchAnalyticsResponse:
    logger.info("Getting search analytics for owner='%s' (%s..%s)", owner_id, date_from, date_to)
    try:
        analytics = svc.get_search_analytics(owner_id, date_from, date_to, limit)
    except CallSearchError as e:
        raise to_http_exception(e)

    return SearchAnalyticsResponse(
        owner_id=analytics.owner_id,
        total_searches=analytics.total_searches,
        unique_queries=analytics.unique_queries,
        avg_result_count=analytics.avg_result_count,
        avg_search_time_ms=analytics.avg_search_time_ms,
        success_rate=analytics.success_rate,
        searches_by_type=analytics.searches_by_type,
        searches_by_day=[DayCount(date=day, count=n) for day, n in analytics.searches_by_day],
        popular_queries=[QueryStatsResponse(**asdict(q)) for q in analytics.popular_queries],
        zero_result_queries=[QueryStatsResponse(**asdict(q)) for q in analytics.zero_result_queries],
    )
