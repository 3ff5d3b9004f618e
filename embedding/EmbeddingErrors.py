# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-21
# Description: EmbeddingErrors
# -----------------------------------------------------------------------------
from typing import Optional


class CallSearchError(Exception):
    """Base class for every error raised by the retrieval pipeline."""

    retryable: bool = False

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConfigurationError(CallSearchError):
    """Missing or rejected credentials. Surface to the operator, never retry."""


class ValidationError(CallSearchError):
    """Caller error, rejected before any external call."""


class EmptyContentError(ValidationError):
    """Content is None, not a string, or blank after normalization."""


class BatchTooLargeError(ValidationError):
    def __init__(self, size: int, max_size: int) -> None:
        super().__init__(f"Maximum {max_size} items per batch, got {size}")
        self.size = size
        self.max_size = max_size


class TransientEmbeddingError(CallSearchError):
    """Timeout, connection failure or provider 5xx."""

    retryable = True


class RateLimitError(TransientEmbeddingError):
    """Provider throttled us; callers should cool down longer than for generic transients."""

    def __init__(
        self,
        message: str,
        *,
        retry_after_s: Optional[float] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.retry_after_s = retry_after_s


class InvalidResponseError(CallSearchError):
    """Wrong vector dimension or malformed payload: provider/version mismatch."""


class EmbeddingProviderError(CallSearchError):
    """Provider rejected the request (4xx other than auth / rate limit)."""


class NotFoundError(CallSearchError):
    """Call, transcript or embedding does not exist for this owner."""
