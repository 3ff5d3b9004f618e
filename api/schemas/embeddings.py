# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-27
# Description: embeddings.py
# -----------------------------------------------------------------------------
from typing import List, Optional

from pydantic import BaseModel, Field

from embedding.EmbeddingRecord import ContentType

class GenerateEmbeddingRequest(BaseModel):
    call_id: str = Field(..., min_length=1)
    content_type: ContentType = ContentType.TRANSCRIPT
    force_regenerate: bool = False

class GenerateEmbeddingResponse(BaseModel):
    embedding_id: str
    cached: bool
    token_count: int
    cost: Optional[float] = None

class BatchEmbeddingRequest(BaseModel):
    # size limits are enforced by the batch service (400, not 422)
    call_ids: List[str]
    content_type: ContentType = ContentType.TRANSCRIPT
    force_regenerate: bool = False

class BatchItemResponse(BaseModel):
    call_id: str
    success: bool
    embedding_id: Optional[str] = None
    cached: bool = False
    token_count: int = 0
    cost: float = 0.0
    error: Optional[str] = None
    error_type: Optional[str] = None

class BatchSummaryResponse(BaseModel):
    total: int
    success: int
    cached: int
    failed: int

class BatchEmbeddingResponse(BaseModel):
    results: List[BatchItemResponse]
    summary: BatchSummaryResponse
    total_cost: float
    total_tokens: int

class PurgeEmbeddingsResponse(BaseModel):
    older_than_days: int
    deleted: int
