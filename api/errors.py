# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-27
# Description: errors.py
# -----------------------------------------------------------------------------
import logging
import math
from typing import Dict, Optional

from fastapi import HTTPException

from embedding.EmbeddingErrors import (
    CallSearchError,
    ConfigurationError,
    EmbeddingProviderError,
    InvalidResponseError,
    NotFoundError,
    RateLimitError,
    TransientEmbeddingError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def status_for(e: CallSearchError) -> int:
    # RateLimitError before its TransientEmbeddingError parent
    if isinstance(e, ValidationError):
        return 400
    if isinstance(e, NotFoundError):
        return 404
    if isinstance(e, RateLimitError):
        return 429
    if isinstance(e, ConfigurationError):
        return 503
    if isinstance(e, (TransientEmbeddingError, InvalidResponseError, EmbeddingProviderError)):
        return 502
    return 500


def to_http_exception(e: CallSearchError) -> HTTPException:
    status = status_for(e)
    headers: Optional[Dict[str, str]] = None
    if isinstance(e, RateLimitError):
        headers = {"Retry-After": str(max(1, math.ceil(e.retry_after_s or 1)))}

    if status >= 500:
        logger.error("%s -> HTTP %d: %s", type(e).__name__, status, e)
    else:
        logger.warning("%s -> HTTP %d: %s", type(e).__name__, status, e)

    return HTTPException(status_code=status, detail=e.message, headers=headers)
