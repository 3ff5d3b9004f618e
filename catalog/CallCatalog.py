# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-23
# Description: CallCatalog
# -----------------------------------------------------------------------------
from __future__ import annotations

import json
import logging
import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Set

from catalog.types import CallRecord, KeywordMatchResult
from search.types import SearchFilters
from utility.logging_utils import get_class_logger

# Placeholder written by the transcription step for calls under the minimum length
TOO_SHORT_PLACEHOLDER = "Call too short to transcribe."

_SCHEMA = """
CREATE TABLE IF NOT EXISTS calls (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    filename TEXT,
    call_time TEXT,
    call_duration_seconds INTEGER
);

CREATE INDEX IF NOT EXISTS idx_calls_owner ON calls(owner_id);

CREATE TABLE IF NOT EXISTS transcripts (
    call_id TEXT PRIMARY KEY REFERENCES calls(id) ON DELETE CASCADE,
    transcript TEXT,
    raw_transcript TEXT,
    edited_transcript TEXT,
    summary TEXT,
    language TEXT,
    transcription_status TEXT DEFAULT 'completed'
);

CREATE TABLE IF NOT EXISTS insights (
    call_id TEXT PRIMARY KEY REFERENCES calls(id) ON DELETE CASCADE,
    overall_sentiment TEXT,
    call_outcome TEXT,
    action_items TEXT DEFAULT '[]',
    red_flags TEXT DEFAULT '[]'
);
"""

# blank edited/raw transcripts fall through to the next source
_TRANSCRIPT_TEXT = (
    "COALESCE(NULLIF(TRIM(t.edited_transcript), ''), NULLIF(TRIM(t.raw_transcript), ''), t.transcript)"
)

_SELECT_CALLS = f"""
SELECT
    c.id, c.owner_id, c.filename, c.call_time, c.call_duration_seconds,
    {_TRANSCRIPT_TEXT} AS transcript_text,
    t.summary, t.language, t.transcription_status,
    i.overall_sentiment, i.call_outcome, i.action_items, i.red_flags
FROM calls c
LEFT JOIN transcripts t ON t.call_id = c.id
LEFT JOIN insights i ON i.call_id = c.id
"""


def _json_len(value: Any) -> int:
    if not value:
        return 0
    try:
        parsed = json.loads(value) if isinstance(value, str) else value
    except (TypeError, ValueError):
        return 0
    return len(parsed) if isinstance(parsed, (list, tuple)) else 0


_WORD_RE = re.compile(r"[a-z0-9]+(?:'[a-z0-9]+)*")

STOPWORDS = frozenset("""
a about above after again against all am an and any are as at be because been before being below
between both but by can could did do does doing down during each few for from further had has have
having he her here hers herself him himself his how i if in into is it its itself just me more most
my myself no nor not now of off on once only or other our ours ourselves out over own same she should
so some such than that the their theirs them themselves then there these they this those through to
too under until up very was we were what when where which while who whom why will with would you your
yours yourself yourselves
""".split())


def _words(text: Optional[str]) -> Set[str]:
    return set(_WORD_RE.findall((text or "").lower()))


def keyword_terms(query_text: Optional[str]) -> Set[str]:
    """Searchable words of a query: lowercased, stopwords and single characters dropped."""
    return {w for w in _words(query_text) if len(w) > 1 and w not in STOPWORDS}


class CallCatalog:
    """
    Read-side gateway onto the call catalog (calls, transcripts, insights).

    Upload, transcription and insight generation own these tables; this class
    only reads them, plus a small write helper used to seed data.
    """

    def __init__(self, db_path: str | Path, logger: logging.Logger | None = None) -> None:
        self.db_path = str(db_path)
        self.logger = logger or get_class_logger(self.__class__)
        self.ensure_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(_SCHEMA)

    # -------------------------------------------------------------------------
    def add_call(
        self,
        *,
        call_id: str,
        owner_id: str,
        transcript: Optional[str] = None,
        summary: Optional[str] = None,
        filename: Optional[str] = None,
        call_time: Optional[str] = None,
        duration: Optional[int] = None,
        language: Optional[str] = None,
        transcription_status: str = "completed",
        sentiment: Optional[str] = None,
        outcome: Optional[str] = None,
        action_items: Sequence[str] = (),
        red_flags: Sequence[str] = (),
    ) -> None:
        """Insert or replace a call with its transcript and insights."""
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO calls (id, owner_id, filename, call_time, call_duration_seconds) "
                "VALUES (?, ?, ?, ?, ?)",
                (call_id, owner_id, filename or f"{call_id}.wav", call_time, duration),
            )
            conn.execute(
                "INSERT OR REPLACE INTO transcripts "
                "(call_id, transcript, raw_transcript, summary, language, transcription_status) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (call_id, transcript, transcript, summary, language, transcription_status),
            )
            conn.execute(
                "INSERT OR REPLACE INTO insights "
                "(call_id, overall_sentiment, call_outcome, action_items, red_flags) "
                "VALUES (?, ?, ?, ?, ?)",
                (call_id, sentiment, outcome, json.dumps(list(action_items)), json.dumps(list(red_flags))),
            )

    def update_transcript(self, call_id: str, edited_transcript: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE transcripts SET edited_transcript = ? WHERE call_id = ?",
                (edited_transcript, call_id),
            )

    # -------------------------------------------------------------------------
    def get_call(self, call_id: str, owner_id: str) -> Optional[CallRecord]:
        with self._connect() as conn:
            row = conn.execute(
                _SELECT_CALLS + " WHERE c.id = ? AND c.owner_id = ?",
                (call_id, owner_id),
            ).fetchone()
        return self._to_record(row) if row else None

    def list_call_ids(self, owner_id: str) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id FROM calls WHERE owner_id = ? ORDER BY id", (owner_id,)
            ).fetchall()
        return [r["id"] for r in rows]

    def fetch_calls(
        self,
        call_ids: Iterable[str],
        owner_id: str,
        filters: Optional[SearchFilters] = None,
    ) -> List[CallRecord]:
        """
        Current state of the given calls. Date and duration bounds are applied
        here; sentiment/outcome/language/flag filters are left to the caller.

        Date bounds compare instants through julianday(), so call times stored
        with any UTC offset (or 'Z', or a space separator) filter correctly.
        """
        ids = list(dict.fromkeys(call_ids))
        if not ids:
            return []

        clauses = [f"c.id IN ({','.join('?' for _ in ids)})", "c.owner_id = ?"]
        params: List[Any] = [*ids, owner_id]

        if filters is not None:
            if filters.date_from is not None:
                clauses.append("julianday(c.call_time) >= julianday(?)")
                params.append(filters.date_from.isoformat())
            if filters.date_to is not None:
                clauses.append("julianday(c.call_time) <= julianday(?)")
                params.append(filters.date_to.isoformat())
            if filters.min_duration is not None:
                clauses.append("c.call_duration_seconds >= ?")
                params.append(filters.min_duration)
            if filters.max_duration is not None:
                clauses.append("c.call_duration_seconds <= ?")
                params.append(filters.max_duration)

        with self._connect() as conn:
            rows = conn.execute(_SELECT_CALLS + " WHERE " + " AND ".join(clauses), params).fetchall()
        return [self._to_record(r) for r in rows]

    def keyword_search(
        self,
        owner_id: str,
        query_text: str,
        call_ids: Iterable[str],
    ) -> KeywordMatchResult:
        """
        Which of `call_ids` have a transcript containing ANY of the query's
        keyword terms as a whole word (case-insensitive, stopwords ignored).
        Datastore errors are returned as a failed KeywordMatchResult.
        """
        terms = keyword_terms(query_text)
        ids = list(dict.fromkeys(call_ids))
        if not terms or not ids:
            return KeywordMatchResult.matched(())

        sql = (
            f"SELECT c.id, {_TRANSCRIPT_TEXT} AS transcript_text "
            "FROM calls c JOIN transcripts t ON t.call_id = c.id "
            f"WHERE c.owner_id = ? AND c.id IN ({','.join('?' for _ in ids)})"
        )
        try:
            with self._connect() as conn:
                rows = conn.execute(sql, [owner_id, *ids]).fetchall()
        except sqlite3.Error as e:
            self.logger.warning("Keyword search failed for owner '%s': %s", owner_id, e)
            return KeywordMatchResult.failed(str(e))

        return KeywordMatchResult.matched(
            r["id"] for r in rows if not terms.isdisjoint(_words(r["transcript_text"]))
        )

    # -------------------------------------------------------------------------
    @staticmethod
    def _to_record(row: sqlite3.Row) -> CallRecord:
        return CallRecord(
            call_id=row["id"],
            owner_id=row["owner_id"],
            filename=row["filename"],
            call_time=row["call_time"],
            duration=row["call_duration_seconds"],
            transcript_text=row["transcript_text"],
            summary=row["summary"],
            language=row["language"],
            transcription_status=row["transcription_status"],
            sentiment=row["overall_sentiment"],
            outcome=row["call_outcome"],
            red_flag_count=_json_len(row["red_flags"]),
            action_item_count=_json_len(row["action_items"]),
        )
