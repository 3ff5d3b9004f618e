# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-27
# Description: embeddings router
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_batch_service, get_embedding_service, get_owner_id
from api.errors import to_http_exception
from api.schemas.embeddings import (
    BatchEmbeddingRequest,
    BatchEmbeddingResponse,
    BatchItemResponse,
    BatchSummaryResponse,
    GenerateEmbeddingRequest,
    GenerateEmbeddingResponse,
    PurgeEmbeddingsResponse,
)
from embedding.EmbeddingErrors import CallSearchError
from services.BatchEmbeddingService import BatchEmbeddingService
from services.EmbeddingService import EmbeddingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/embeddings", tags=["embeddings"])


@router.post("", response_model=GenerateEmbeddingResponse)
def generate_embedding(
    req: GenerateEmbeddingRequest,
    owner_id: str = Depends(get_owner_id),
    svc: EmbeddingService = Depends(get_embedding_service),
) -> GenerateEmbeddingResponse:
    logger.info("POST /embeddings call_id=%s content_type=%s", req.call_id, req.content_type.value)
    try:
        res = svc.generate_for_call(
            req.call_id,
            owner_id,
            req.content_type,
            force_regenerate=req.force_regenerate,
        )
    except CallSearchError as e:
        raise to_http_exception(e)

    return GenerateEmbeddingResponse(
        embedding_id=res.embedding_id,
        cached=res.cached,
        token_count=res.token_count,
        cost=res.cost,
    )


@router.post("/batch", response_model=BatchEmbeddingResponse)
def generate_batch(
    req: BatchEmbeddingRequest,
    owner_id: str = Depends(get_owner_id),
    svc: BatchEmbeddingService = Depends(get_batch_service),
) -> BatchEmbeddingResponse:
    logger.info("POST /embeddings/batch size=%d", len(req.call_ids))
    try:
        batch = svc.run_for_calls(
            req.call_ids,
            owner_id,
            req.content_type,
            force_regenerate=req.force_regenerate,
        )
    except CallSearchError as e:
        raise to_http_exception(e)

    return BatchEmbeddingResponse(
        results=[
            BatchItemResponse(
                call_id=r.entity_id,
                success=r.success,
                embedding_id=r.embedding_id,
                cached=r.cached,
                token_count=r.token_count,
                cost=r.cost,
                error=r.error,
                error_type=r.error_type,
            )
            for r in batch.results
        ],
        summary=BatchSummaryResponse(
            total=batch.summary.total,
            success=batch.summary.success,
            cached=batch.summary.cached,
            failed=batch.summary.failed,
        ),
        total_cost=batch.total_cost,
        total_tokens=batch.total_tokens,
    )


@router.delete("", response_model=PurgeEmbeddingsResponse)
def purge_embeddings(
    older_than_days: int = Query(..., ge=0),
    owner_id: str = Depends(get_owner_id),
    svc: EmbeddingService = Depends(get_embedding_service),
) -> PurgeEmbeddingsResponse:
    try:
        deleted = svc.purge_older_than(older_than_days, owner_id=owner_id)
    except CallSearchError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Embedding purge failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Purge failed: {e}")

    logger.info("Purged %d embeddings older than %d days (owner=%s)", deleted, older_than_days, owner_id)
    return PurgeEmbeddingsResponse(older_than_days=older_than_days, deleted=deleted)
