# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-23
# Description: types.py
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, List, Optional

SENTIMENTS = frozenset({"positive", "neutral", "negative", "mixed"})
OUTCOMES = frozenset({"resolved", "pending", "escalated", "no_resolution"})


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class SearchFilters:
    """Query-time filters. Empty sets and None mean 'no constraint'."""
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    min_duration: Optional[int] = None
    max_duration: Optional[int] = None
    sentiment: FrozenSet[str] = field(default_factory=frozenset)
    outcome: FrozenSet[str] = field(default_factory=frozenset)
    language: FrozenSet[str] = field(default_factory=frozenset)
    has_red_flags: Optional[bool] = None
    has_action_items: Optional[bool] = None

    def __post_init__(self) -> None:
        # naive bounds are read as UTC so mixed naive/aware bounds compare
        for name in ("date_from", "date_to"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, _as_utc(value))

        # accept any iterable for the set-valued filters
        for name in ("sentiment", "outcome", "language"):
            object.__setattr__(self, name, frozenset(getattr(self, name) or ()))

        unknown = self.sentiment - SENTIMENTS
        if unknown:
            raise ValueError(f"Unknown sentiment filter values: {sorted(unknown)}")
        unknown = self.outcome - OUTCOMES
        if unknown:
            raise ValueError(f"Unknown outcome filter values: {sorted(unknown)}")

        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        if (
            self.min_duration is not None
            and self.max_duration is not None
            and self.min_duration > self.max_duration
        ):
            raise ValueError("min_duration must not exceed max_duration")

    @property
    def needs_post_filter(self) -> bool:
        return bool(
            self.sentiment
            or self.outcome
            or self.language
            or self.has_red_flags is not None
            or self.has_action_items is not None
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.date_from:
            out["date_from"] = self.date_from.isoformat()
        if self.date_to:
            out["date_to"] = self.date_to.isoformat()
        if self.min_duration is not None:
            out["min_duration"] = self.min_duration
        if self.max_duration is not None:
            out["max_duration"] = self.max_duration
        for name in ("sentiment", "outcome", "language"):
            values = getattr(self, name)
            if values:
                out[name] = sorted(values)
        if self.has_red_flags is not None:
            out["has_red_flags"] = self.has_red_flags
        if self.has_action_items is not None:
            out["has_action_items"] = self.has_action_items
        return out


@dataclass(frozen=True)
class SearchResult:
    call_id: str
    similarity: float
    transcript_preview: str = ""
    filename: Optional[str] = None
    call_time: Optional[str] = None
    duration: Optional[int] = None
    sentiment: Optional[str] = None
    outcome: Optional[str] = None
    language: Optional[str] = None
    has_red_flags: bool = False
    has_action_items: bool = False


@dataclass(frozen=True)
class SearchResponse:
    results: List[SearchResult]
    search_time_ms: int
    query: Optional[str] = None
    keyword_fallback: bool = False

    @property
    def total_results(self) -> int:
        return len(self.results)
