# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-27
# Description: search router
# -----------------------------------------------------------------------------
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_owner_id, get_search_service
from api.errors import to_http_exception
from api.schemas.search import SemanticSearchRequest, SemanticSearchResponse
from embedding.EmbeddingErrors import CallSearchError
from services.SearchService import SearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


@router.post("/semantic", response_model=SemanticSearchResponse)
def semantic_search(
    req: SemanticSearchRequest,
    owner_id: str = Depends(get_owner_id),
    svc: SearchService = Depends(get_search_service),
) -> SemanticSearchResponse:
    try:
        filters = req.filters.to_filters() if req.filters is not None else None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        resp = svc.search(
            owner_id,
            query_text=req.query,
            query_vector=req.query_vector,
            limit=req.limit,
            threshold=req.threshold,
            filters=filters,
        )
    except CallSearchError as e:
        raise to_http_exception(e)

    return SemanticSearchResponse.from_search(resp)


@router.get("/similar/{call_id}", response_model=SemanticSearchResponse)
def similar_calls(
    call_id: str,
    limit: Optional[int] = Query(None),
    owner_id: str = Depends(get_owner_id),
    svc: SearchService = Depends(get_search_service),
) -> SemanticSearchResponse:
    logger.info("GET /search/similar/%s (limit=%s)", call_id, limit)
    try:
        resp = svc.find_similar_to(call_id, owner_id, limit=limit)
    except CallSearchError as e:
        raise to_http_exception(e)

    return SemanticSearchResponse.from_search(resp)
