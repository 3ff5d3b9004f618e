# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-23
# Description: similarity.py
# -----------------------------------------------------------------------------
from typing import Iterable, List, Sequence

import numpy as np

from search.types import SearchResult


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b|), in [-1, 1]. Zero vectors have similarity 0."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Vectors must have the same length ({va.shape} vs {vb.shape})")

    denom = np.linalg.norm(va) * np.linalg.norm(vb)
    if denom == 0.0:
        return 0.0
    # float rounding can push |sim| slightly past 1
    return float(np.clip(np.dot(va, vb) / denom, -1.0, 1.0))


def match_strength(similarity: float) -> float:
    """Cosine similarity surfaced to users: negative values clamp to 0, capped at 1."""
    return min(max(float(similarity), 0.0), 1.0)


def sort_results(results: Iterable[SearchResult]) -> List[SearchResult]:
    """Similarity descending, ties broken by call id so ordering is deterministic."""
    return sorted(results, key=lambda r: (-r.similarity, r.call_id))
