# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-26
# Description: SearchQueryLog
# -----------------------------------------------------------------------------
from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from utility.logging_utils import get_class_logger

_SCHEMA = """
CREATE TABLE IF NOT EXISTS search_queries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id TEXT NOT NULL,
    query_text TEXT NOT NULL,
    query_type TEXT NOT NULL CHECK (query_type IN ('semantic', 'hybrid', 'similar')),
    filters TEXT NOT NULL DEFAULT '{}',
    result_count INTEGER NOT NULL DEFAULT 0,
    has_results INTEGER NOT NULL DEFAULT 0,
    search_time_ms INTEGER,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_search_queries_owner ON search_queries(owner_id);
"""

# most frequent queries first, most recent breaking ties
_QUERY_STATS = """
SELECT query_text, COUNT(*) AS n, AVG(result_count) AS avg_results,
       AVG(search_time_ms) AS avg_time, MAX(created_at) AS last_searched
FROM search_queries WHERE {where}
GROUP BY query_text {having}
ORDER BY n DESC, last_searched DESC, query_text
LIMIT ?
"""


@dataclass(frozen=True)
class QueryStats:
    query: str
    search_count: int
    avg_result_count: float
    avg_search_time_ms: float
    last_searched: str


@dataclass(frozen=True)
class SearchAnalytics:
    owner_id: str
    total_searches: int = 0
    unique_queries: int = 0
    avg_result_count: float = 0.0
    avg_search_time_ms: float = 0.0
    success_rate: float = 0.0
    searches_by_type: Dict[str, int] = field(default_factory=dict)
    searches_by_day: List[Tuple[str, int]] = field(default_factory=list)
    popular_queries: List[QueryStats] = field(default_factory=list)
    zero_result_queries: List[QueryStats] = field(default_factory=list)


class SearchQueryLog:
    """Append-only log of executed searches, for search analytics."""

    def __init__(self, db_path: str | Path, logger: logging.Logger | None = None) -> None:
        self.db_path = str(db_path)
        self.logger = logger or get_class_logger(self.__class__)
        with self._connect() as conn:
            conn.executescript(_SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def record(
        self,
        *,
        owner_id: str,
        query_text: str,
        query_type: str,
        result_count: int,
        search_time_ms: int,
        filters: Optional[Dict[str, Any]] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO search_queries "
                "(owner_id, query_text, query_type, filters, result_count, has_results, search_time_ms, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    owner_id,
                    query_text,
                    query_type,
                    json.dumps(filters or {}, sort_keys=True),
                    result_count,
                    int(result_count > 0),
                    search_time_ms,
                    (created_at or datetime.now(timezone.utc)).astimezone(timezone.utc).isoformat(),
                ),
            )

    def summarize(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 10,
    ) -> SearchAnalytics:
        """
        Search analytics for one owner. Date bounds are whole UTC days, both inclusive.
        """
        where, params = self._where(owner_id, date_from, date_to)

        with self._connect() as conn:
            totals = conn.execute(
                "SELECT COUNT(*) AS searches, COUNT(DISTINCT query_text) AS unique_queries, "
                "AVG(result_count) AS avg_results, AVG(search_time_ms) AS avg_time, "
                "AVG(has_results) AS success_rate "
                f"FROM search_queries WHERE {where}",
                params,
            ).fetchone()
            by_type = conn.execute(
                f"SELECT query_type, COUNT(*) AS n FROM search_queries WHERE {where} "
                "GROUP BY query_type ORDER BY query_type",
                params,
            ).fetchall()
            by_day = conn.execute(
                f"SELECT substr(created_at, 1, 10) AS day, COUNT(*) AS n FROM search_queries WHERE {where} "
                "GROUP BY day ORDER BY day",
                params,
            ).fetchall()
            popular = conn.execute(_QUERY_STATS.format(where=where, having=""), [*params, limit]).fetchall()
            zero = conn.execute(
                _QUERY_STATS.format(where=where, having="HAVING MAX(has_results) = 0"), [*params, limit]
            ).fetchall()

        return SearchAnalytics(
            owner_id=owner_id,
            total_searches=int(totals["searches"] or 0),
            unique_queries=int(totals["unique_queries"] or 0),
            avg_result_count=round(float(totals["avg_results"] or 0.0), 2),
            avg_search_time_ms=round(float(totals["avg_time"] or 0.0), 2),
            success_rate=round(float(totals["success_rate"] or 0.0), 4),
            searches_by_type={r["query_type"]: r["n"] for r in by_type},
            searches_by_day=[(r["day"], r["n"]) for r in by_day],
            popular_queries=[self._to_stats(r) for r in popular],
            zero_result_queries=[self._to_stats(r) for r in zero],
        )

    # -------------------------------------------------------------------------
    @staticmethod
    def _where(
        owner_id: str, date_from: Optional[date], date_to: Optional[date]
    ) -> Tuple[str, List[Any]]:
        # created_at is always a UTC isoformat string, so its first 10 chars are the UTC day
        clauses = ["owner_id = ?"]
        params: List[Any] = [owner_id]
        if date_from is not None:
            clauses.append("substr(created_at, 1, 10) >= ?")
            params.append(date_from.isoformat())
        if date_to is not None:
            clauses.append("substr(created_at, 1, 10) <= ?")
            params.append(date_to.isoformat())
        return " AND ".join(clauses), params

    @staticmethod
    def _to_stats(row: sqlite3.Row) -> QueryStats:
        return QueryStats(
            query=row["query_text"],
            search_count=row["n"],
            avg_result_count=round(float(row["avg_results"] or 0.0), 2),
            avg_search_time_ms=round(float(row["avg_time"] or 0.0), 2),
            last_searched=row["last_searched"],
        )
