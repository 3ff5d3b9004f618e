# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-21
# Description: EmbeddingRecord
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

import numpy as np

from embedding.EmbeddingErrors import InvalidResponseError


class ContentType(str, Enum):
    TRANSCRIPT = "transcript"
    SUMMARY = "summary"
    COMBINED = "combined"


class OperationType(str, Enum):
    GENERATE = "generate"
    BATCH = "batch"
    REGENERATE = "regenerate"


def make_embedding_id(entity_id: str, content_type: ContentType) -> str:
    """Compound key (entity, content type) used as the vector store id."""
    return f"{entity_id}::{ContentType(content_type).value}"


def as_vector(values, expected_dim: int) -> np.ndarray:
    """
    Coerce a provider/store payload into a float32 vector of the expected dimension.
    Raises InvalidResponseError on wrong length or non-finite values.
    """
    try:
        arr = np.asarray(values, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise InvalidResponseError(f"Embedding is not numeric: {e}", cause=e) from e

    if arr.ndim != 1 or arr.shape[0] != expected_dim:
        got = arr.shape[0] if arr.ndim == 1 else arr.shape
        raise InvalidResponseError(f"Invalid embedding dimensions: expected {expected_dim}, got {got}")

    if not np.all(np.isfinite(arr)):
        raise InvalidResponseError("Embedding contains NaN or infinite values")

    return arr


@dataclass
class EmbeddingRecord:
    """One vector snapshot of one call's content, keyed by (entity_id, content_type)."""
    entity_id: str
    owner_id: str
    vector: np.ndarray
    model_name: str
    model_version: int
    content_type: ContentType
    content_hash: str
    token_count: int
    generated_at: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.content_type = ContentType(self.content_type)
        if self.token_count < 0:
            raise ValueError(f"token_count must be >= 0, got {self.token_count}")
        if self.model_version < 1:
            raise ValueError(f"model_version must be >= 1, got {self.model_version}")
        if self.created_at is None:
            self.created_at = self.generated_at
        if self.updated_at is None:
            self.updated_at = self.generated_at

    @property
    def embedding_id(self) -> str:
        return make_embedding_id(self.entity_id, self.content_type)

    def validate_dimension(self, expected_dim: int) -> None:
        self.vector = as_vector(self.vector, expected_dim)
