# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-23
# Description: types.py
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class CallRecord:
    """Current state of one call, joined from calls + transcripts + insights."""
    call_id: str
    owner_id: str
    filename: Optional[str] = None
    call_time: Optional[str] = None
    duration: Optional[int] = None

    # transcript
    transcript_text: Optional[str] = None
    summary: Optional[str] = None
    language: Optional[str] = None
    transcription_status: Optional[str] = None

    # insights
    sentiment: Optional[str] = None
    outcome: Optional[str] = None
    red_flag_count: int = 0
    action_item_count: int = 0

    @property
    def has_red_flags(self) -> bool:
        return self.red_flag_count > 0

    @property
    def has_action_items(self) -> bool:
        return self.action_item_count > 0


@dataclass(frozen=True)
class KeywordMatchResult:
    """
    Outcome of the keyword (full-text) search. A failed search is a value, not an
    exception, so ranking can fall back to pure vector results.
    """
    ok: bool
    call_ids: FrozenSet[str] = field(default_factory=frozenset)
    error: Optional[str] = None

    @classmethod
    def matched(cls, call_ids) -> "KeywordMatchResult":
        return cls(ok=True, call_ids=frozenset(call_ids))

    @classmethod
    def failed(cls, error: str) -> "KeywordMatchResult":
        return cls(ok=False, error=error)
