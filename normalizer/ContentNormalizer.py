# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-21
# Description: ContentNormalizer
# -----------------------------------------------------------------------------
import math
import re
from dataclasses import dataclass
from typing import Any

import settings
from embedding.EmbeddingErrors import EmptyContentError
from embedding.EmbeddingRecord import ContentType

# [00:01:23] style markers emitted by the transcription provider
_TIMESTAMP_RE = re.compile(r"\[\d+:\d+:\d+\]")

# Speaker labels at the start of a line, e.g. "Speaker 1:", "Patient:", "Staff:"
_SPEAKER_RE = re.compile(
    r"^\s*(?:Speaker\s*\d+|Patient|Staff|Agent|Caller|Customer)\s*:",
    re.IGNORECASE | re.MULTILINE,
)

_WHITESPACE_RE = re.compile(r"\s+")

CHARS_PER_TOKEN = 4
TRUNCATION_MARKER = "..."


def estimate_token_count(text: str) -> int:
    """Rough approximation: 1 token ~ 4 characters."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


@dataclass
class ContentNormalizer:
    """
    Turns raw transcript / summary text into embeddable text.

    Every rejection happens here, before hashing or any network call, and is
    raised as EmptyContentError (non-retryable).
    """

    max_tokens: int = settings.MAX_TOKENS_PER_REQUEST

    @property
    def max_chars(self) -> int:
        return self.max_tokens * CHARS_PER_TOKEN

    def normalize(self, text: Any, content_type: ContentType = ContentType.TRANSCRIPT) -> str:
        self._require_text(text)
        content_type = ContentType(content_type)

        cleaned = text
        if content_type in (ContentType.TRANSCRIPT, ContentType.COMBINED):
            cleaned = _TIMESTAMP_RE.sub("", cleaned)
            cleaned = _SPEAKER_RE.sub("", cleaned)

        cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
        if not cleaned:
            raise EmptyContentError("Content is empty after normalization")

        if len(cleaned) > self.max_chars:
            cleaned = cleaned[: self.max_chars] + TRUNCATION_MARKER

        return cleaned

    def combine(self, transcript: Any, summary: Any) -> str:
        """
        Build 'combined' content. The summary is repeated ahead of the transcript
        so it carries more weight in the resulting vector.
        """
        self._require_text(transcript)
        self._require_text(summary)
        combined = f"{summary}\n\n{summary}\n\n{transcript}"
        return self.normalize(combined, ContentType.COMBINED)

    @staticmethod
    def _require_text(text: Any) -> None:
        if text is None or not isinstance(text, str):
            raise EmptyContentError(
                f"Content must be a non-empty string, got {type(text).__name__}"
            )
        if not text.strip():
            raise EmptyContentError("Content is blank")
