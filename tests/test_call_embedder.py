# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-22
# Description: test_call_embedder.py
# -----------------------------------------------------------------------------
from dataclasses import replace

import httpx
import numpy as np
import openai
import pytest

from embedding.CallEmbedder import CallEmbedder
from embedding.EmbeddingErrors import (
    ConfigurationError,
    EmbeddingProviderError,
    EmptyContentError,
    InvalidResponseError,
    RateLimitError,
    TransientEmbeddingError,
)

_URL = "https://api.openai.com/v1/embeddings"


def _response(status: int, headers=None) -> httpx.Response:
    return httpx.Response(status, headers=headers or {}, request=httpx.Request("POST", _URL))


def _connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=httpx.Request("POST", _URL))


def _rate_limited(retry_after=None) -> openai.RateLimitError:
    headers = {"retry-after": str(retry_after)} if retry_after is not None else {}
    return openai.RateLimitError("rate limited", response=_response(429, headers), body=None)


def test_generate_returns_vector_tokens_and_model(embedder, fake_client, dim):
    res = embedder.generate("patient asked about billing")

    assert isinstance(res.vector, np.ndarray)
    assert res.vector.shape == (dim,)
    assert res.vector.dtype == np.float32
    assert res.token_count == len("patient asked about billing") // 4
    assert res.model_name == "text-embedding-3-small"
    assert fake_client.embeddings.inputs == ["patient asked about billing"]


def test_transient_errors_are_retried_with_linear_backoff(embedder, fake_client, sleeps):
    fake_client.embeddings.errors = [_connection_error(), _connection_error()]

    res = embedder.generate("hello")

    assert res.vector is not None
    assert len(fake_client.embeddings.inputs) == 3
    assert sleeps == [1.0, 2.0]


def test_retries_stop_after_three_attempts(embedder, fake_client, sleeps):
    fake_client.embeddings.errors = [
        openai.InternalServerError("boom", response=_response(500), body=None) for _ in range(5)
    ]

    with pytest.raises(TransientEmbeddingError):
        embedder.generate("hello")

    assert len(fake_client.embeddings.inputs) == 3
    assert sleeps == [1.0, 2.0]


def test_timeouts_are_transient(embedder, fake_client):
    fake_client.embeddings.errors = [openai.APITimeoutError(request=httpx.Request("POST", _URL))]
    embedder.generate("hello")
    assert len(fake_client.embeddings.inputs) == 2


def test_rate_limit_backs_off_longer_and_honours_retry_after(embedder, fake_client, sleeps):
    fake_client.embeddings.errors = [_rate_limited(), _rate_limited(retry_after=7)]

    embedder.generate("hello")

    # attempt 1: 1 * 1.0 * 2; attempt 2: max(2 * 1.0 * 2, 7)
    assert sleeps == [2.0, 7.0]


def test_rate_limit_exhaustion_raises_rate_limit_error(embedder, fake_client):
    fake_client.embeddings.errors = [_rate_limited(retry_after=1) for _ in range(3)]

    with pytest.raises(RateLimitError) as exc:
        embedder.generate("hello")
    assert exc.value.retryable
    assert exc.value.retry_after_s == 1.0


def test_auth_failure_is_not_retried(embedder, fake_client, sleeps):
    fake_client.embeddings.errors = [
        openai.AuthenticationError("bad key", response=_response(401), body=None)
    ]

    with pytest.raises(ConfigurationError):
        embedder.generate("hello")
    assert len(fake_client.embeddings.inputs) == 1
    assert sleeps == []


def test_bad_request_is_not_retried(embedder, fake_client, sleeps):
    fake_client.embeddings.errors = [
        openai.BadRequestError("too long", response=_response(400), body=None)
    ]

    with pytest.raises(EmbeddingProviderError):
        embedder.generate("hello")
    assert sleeps == []


def test_wrong_dimension_is_invalid_response(embedder, fake_client, sleeps):
    fake_client.embeddings.vectors["hello"] = [0.1, 0.2, 0.3]

    with pytest.raises(InvalidResponseError):
        embedder.generate("hello")
    assert len(fake_client.embeddings.inputs) == 1
    assert sleeps == []


def test_empty_text_never_reaches_provider(embedder, fake_client):
    with pytest.raises(EmptyContentError):
        embedder.generate("   ")
    assert fake_client.embeddings.inputs == []


def test_missing_api_key_is_configuration_error(cfg, fake_client, dim):
    embedder = CallEmbedder(replace(cfg, openai_api_key=""), client=fake_client, dimensions=dim)

    with pytest.raises(ConfigurationError):
        embedder.generate("hello")
    assert fake_client.embeddings.inputs == []


def test_healthcheck_reports_failures_as_false(embedder, fake_client):
    assert embedder.healthcheck() is True

    fake_client.embeddings.errors = [
        openai.AuthenticationError("bad key", response=_response(401), body=None)
    ]
    assert embedder.healthcheck() is False
