# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-22
# Description: CallVectorStore
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol, Set, runtime_checkable

import numpy as np

from embedding.EmbeddingRecord import ContentType, EmbeddingRecord


@dataclass(frozen=True)
class VectorMatch:
    """Nearest-neighbour hit. similarity is raw cosine similarity in [-1, 1]."""
    entity_id: str
    content_type: ContentType
    similarity: float


@runtime_checkable
class CallVectorStore(Protocol):
    def test_connection(self) -> bool:
        ...

    def upsert(self, record: EmbeddingRecord) -> str:
        """Atomic insert-or-replace keyed by (entity_id, content_type). Returns the embedding id."""
        ...

    def get_current(
            self,
            entity_id: str,
            content_type: ContentType,
            owner_id: Optional[str] = None,
    ) -> Optional[EmbeddingRecord]:
        ...

    def delete_older_than(self, older_than: datetime, owner_id: Optional[str] = None) -> int:
        ...

    def query(
            self,
            vector: np.ndarray,
            owner_id: str,
            n_results: int,
            content_type: ContentType = ContentType.TRANSCRIPT,
    ) -> List[VectorMatch]:
        ...

    def list_entity_ids(self, owner_id: str, content_type: Optional[ContentType] = None) -> Set[str]:
        ...
