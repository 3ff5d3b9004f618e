# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-22
# Description: CallEmbedder
# -----------------------------------------------------------------------------
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np
import openai
from openai import OpenAI

import settings
from config.Config import Config
from embedding.EmbeddingErrors import (
    CallSearchError,
    ConfigurationError,
    EmbeddingProviderError,
    EmptyContentError,
    InvalidResponseError,
    RateLimitError,
    TransientEmbeddingError,
)
from embedding.EmbeddingRecord import as_vector
from normalizer.ContentNormalizer import estimate_token_count
from utility.logging_utils import get_class_logger


@dataclass(frozen=True)
class EmbeddingResult:
    vector: np.ndarray
    token_count: int
    model_name: str


class CallEmbedder:
    """
    OpenAI embedding client for call content.

    Retry policy: up to max_attempts calls in total, sleeping attempt * base_delay_s
    between them. Only TransientEmbeddingError (and its RateLimitError subclass)
    is retried; configuration, empty-input, invalid-response and provider 4xx
    errors are raised on the first occurrence.
    """

    def __init__(
            self,
            cfg: Config,
            *,
            client: Any = None,
            dimensions: int = settings.EMBEDDING_DIMENSIONS,
            max_attempts: int = settings.RETRY_DEFAULTS["max_attempts"],
            base_delay_s: float = settings.RETRY_DEFAULTS["base_delay_s"],
            rate_limit_factor: float = settings.RETRY_DEFAULTS["rate_limit_factor"],
            timeout_s: float = settings.RETRY_DEFAULTS["timeout_s"],
            sleep: Callable[[float], None] = time.sleep,
            logger=None,
    ):
        self.cfg = cfg
        self.model = cfg.openai_embed_model or "text-embedding-3-small"
        self.dimensions = dimensions
        self.max_attempts = max(1, max_attempts)
        self.base_delay_s = base_delay_s
        self.rate_limit_factor = rate_limit_factor
        self.timeout_s = timeout_s
        self._sleep = sleep
        self.logger = logger or get_class_logger(self.__class__)

        self.client = client
        if self.client is None and cfg.openai_api_key:
            # SDK retries are disabled so this class owns the retry policy
            self.client = OpenAI(
                api_key=cfg.openai_api_key,
                base_url=cfg.openai_base_url or None,
                timeout=timeout_s,
                max_retries=0,
            )
        self.logger.info(
            "CallEmbedder initialized (model=%s, dim=%d, attempts=%d, timeout=%.1fs)",
            self.model,
            self.dimensions,
            self.max_attempts,
            self.timeout_s,
        )

    # -------------------------------------------------------------------------
    def generate(self, text: str) -> EmbeddingResult:
        """Embed a single (already normalized) text."""
        self._require_config()

        if text is None or not isinstance(text, str) or not text.strip():
            raise EmptyContentError("Text is empty")

        last_error: Optional[CallSearchError] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self._embed_once(text)
            except CallSearchError as e:
                if not e.retryable:
                    self.logger.warning("Embedding failed with non-retryable %s: %s", type(e).__name__, e)
                    raise
                last_error = e
                if attempt == self.max_attempts:
                    break
                delay = self._backoff_delay(attempt, e)
                self.logger.warning(
                    "Embedding failed (attempt %d/%d): %s, retrying in %.1fs",
                    attempt,
                    self.max_attempts,
                    e,
                    delay,
                )
                self._sleep(delay)

        self.logger.error("Embedding failed after %d attempts: %s", self.max_attempts, last_error)
        raise last_error  # type: ignore[misc]

    def healthcheck(self) -> bool:
        try:
            result = self.generate("call search embedding healthcheck")
            self.logger.info("Embedding healthcheck PASSED (dim=%d)", result.vector.shape[0])
            return True
        except CallSearchError as e:
            self.logger.warning("Embedding healthcheck FAILED: %s", e)
            return False

    # -------------------------------------------------------------------------
    def _require_config(self) -> None:
        if not self.cfg.openai_api_key:
            raise ConfigurationError(
                "OpenAI API key not configured. Set OPENAI_API_KEY in environment variables."
            )

    def _backoff_delay(self, attempt: int, error: CallSearchError) -> float:
        delay = attempt * self.base_delay_s
        if isinstance(error, RateLimitError):
            delay *= self.rate_limit_factor
            if error.retry_after_s:
                delay = max(delay, error.retry_after_s)
        return delay

    def _embed_once(self, text: str) -> EmbeddingResult:
        try:
            resp = self.client.embeddings.create(
                model=self.model,
                input=text,
                encoding_format="float",
            )
        except openai.APIError as e:
            raise self._classify(e) from e

        data = getattr(resp, "data", None)
        if not data or getattr(data[0], "embedding", None) is None:
            raise InvalidResponseError("No embedding data returned in response")

        vector = as_vector(data[0].embedding, self.dimensions)

        usage = getattr(resp, "usage", None)
        token_count = getattr(usage, "total_tokens", None)
        if not isinstance(token_count, int) or token_count < 0:
            token_count = estimate_token_count(text)

        self.logger.debug("Embedding generated: dim=%d tokens=%d", vector.shape[0], token_count)
        return EmbeddingResult(vector=vector, token_count=token_count, model_name=self.model)

    @staticmethod
    def _classify(e: openai.APIError) -> CallSearchError:
        """Map SDK exceptions onto the pipeline's error taxonomy."""
        if isinstance(e, (openai.AuthenticationError, openai.PermissionDeniedError)):
            return ConfigurationError(f"OpenAI rejected credentials: {e}", cause=e)
        if isinstance(e, openai.RateLimitError):
            retry_after = None
            headers = getattr(getattr(e, "response", None), "headers", None) or {}
            try:
                retry_after = float(headers.get("retry-after")) if headers.get("retry-after") else None
            except (TypeError, ValueError):
                retry_after = None
            return RateLimitError(f"OpenAI rate limit: {e}", retry_after_s=retry_after, cause=e)
        if isinstance(e, openai.APIConnectionError):
            # includes APITimeoutError
            return TransientEmbeddingError(f"OpenAI connection error: {e}", cause=e)
        if isinstance(e, openai.APIStatusError):
            if e.status_code >= 500:
                return TransientEmbeddingError(f"OpenAI server error {e.status_code}: {e}", cause=e)
            return EmbeddingProviderError(f"OpenAI API error {e.status_code}: {e}", cause=e)
        if isinstance(e, openai.APIResponseValidationError):
            return InvalidResponseError(f"Malformed OpenAI response: {e}", cause=e)
        return EmbeddingProviderError(f"OpenAI API error: {e}", cause=e)
