# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-20
# Description: settings.py
# -----------------------------------------------------------------------------
import os
from typing import Any, Dict


def _env(name: str, default: str = "") -> str:
    """Read env var safely and strip whitespace."""
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return int(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be an int, got {v!r}") from e


def _env_float(name: str, default: float) -> float:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return float(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be a float, got {v!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    v = _env(name, "")
    if v == "":
        return default
    v = v.lower()
    if v in ("1", "true", "t", "yes", "y", "on"):
        return True
    if v in ("0", "false", "f", "no", "n", "off"):
        return False
    raise RuntimeError(f"Env var {name} must be a boolean, got {v!r}")


# -----------------------------------------------------------------------------
# Embedding model
# -----------------------------------------------------------------------------
EMBEDDING_DIMENSIONS = _env_int("CALLSEARCH_EMBEDDING_DIMENSIONS", 1536)
EMBEDDING_MODEL_VERSION = _env_int("CALLSEARCH_EMBEDDING_MODEL_VERSION", 1)

# OpenAI limit for text-embedding-3-*; approximated as 4 chars/token
MAX_TOKENS_PER_REQUEST = _env_int("CALLSEARCH_MAX_TOKENS_PER_REQUEST", 8191)

# USD per 1K tokens (text-embedding-3-small)
COST_PER_1K_TOKENS = _env_float("CALLSEARCH_COST_PER_1K_TOKENS", 0.00002)

# Secondary invalidation: regenerate even on a matching hash after this age
CACHE_MAX_AGE_DAYS = _env_int("CALLSEARCH_CACHE_MAX_AGE_DAYS", 30)


# -----------------------------------------------------------------------------
# Embedding client retry / timeout
# -----------------------------------------------------------------------------
RETRY_DEFAULTS: Dict[str, Any] = {
    "max_attempts": _env_int("CALLSEARCH_EMBED_MAX_ATTEMPTS", 3),
    "base_delay_s": _env_float("CALLSEARCH_EMBED_BASE_DELAY_S", 1.0),
    "rate_limit_factor": _env_float("CALLSEARCH_EMBED_RATE_LIMIT_FACTOR", 2.0),
    "timeout_s": _env_float("CALLSEARCH_EMBED_TIMEOUT_S", 30.0),
}


# -----------------------------------------------------------------------------
# Search defaults
# -----------------------------------------------------------------------------
SEARCH_DEFAULTS: Dict[str, Any] = {
    "limit": _env_int("CALLSEARCH_DEFAULT_SEARCH_LIMIT", 20),
    "max_limit": _env_int("CALLSEARCH_MAX_SEARCH_LIMIT", 100),
    "threshold": _env_float("CALLSEARCH_DEFAULT_THRESHOLD", 0.7),
    "similar_limit": _env_int("CALLSEARCH_DEFAULT_SIMILAR_LIMIT", 10),
    "keyword_boost": _env_float("CALLSEARCH_KEYWORD_BOOST", 1.2),
    "preview_chars": _env_int("CALLSEARCH_PREVIEW_CHARS", 200),
}

# Hybrid ranking can be switched off, vector results are then returned as-is
HYBRID_SEARCH_ENABLED = _env_bool("CALLSEARCH_HYBRID_SEARCH", True)

# In-process LRU for query-text embeddings
QUERY_CACHE_SIZE = _env_int("CALLSEARCH_QUERY_CACHE_SIZE", 1000)


# -----------------------------------------------------------------------------
# Batch orchestration
# -----------------------------------------------------------------------------
MAX_BATCH_SIZE = _env_int("CALLSEARCH_MAX_BATCH_SIZE", 100)
BATCH_PACING_MS = _env_int("CALLSEARCH_BATCH_PACING_MS", 100)


# -----------------------------------------------------------------------------
# Sanity checks (tunable)
# -----------------------------------------------------------------------------
if EMBEDDING_DIMENSIONS <= 0:
    raise RuntimeError("EMBEDDING_DIMENSIONS must be positive")

if RETRY_DEFAULTS["max_attempts"] < 1:
    raise RuntimeError("CALLSEARCH_EMBED_MAX_ATTEMPTS must be >= 1")

if SEARCH_DEFAULTS["limit"] > SEARCH_DEFAULTS["max_limit"]:
    raise RuntimeError("Default search limit exceeds the hard ceiling")

if BATCH_PACING_MS < 0:
    raise RuntimeError("CALLSEARCH_BATCH_PACING_MS must be >= 0")
