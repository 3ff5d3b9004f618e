# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-25
# Description: UsageLedger
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional

import settings
from embedding.EmbeddingRecord import OperationType
from utility.logging_utils import get_class_logger

_SCHEMA = """
CREATE TABLE IF NOT EXISTS embedding_costs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id TEXT NOT NULL,
    entity_id TEXT,
    token_count INTEGER NOT NULL DEFAULT 0 CHECK (token_count >= 0),
    model TEXT NOT NULL,
    cost_usd REAL NOT NULL DEFAULT 0,
    operation_type TEXT NOT NULL CHECK (operation_type IN ('generate', 'regenerate', 'batch')),
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_embedding_costs_owner ON embedding_costs(owner_id);
CREATE INDEX IF NOT EXISTS idx_embedding_costs_created_at ON embedding_costs(created_at);
"""


def calculate_cost(token_count: int, rate_per_1k: float = settings.COST_PER_1K_TOKENS) -> float:
    return (token_count / 1000) * rate_per_1k


@dataclass(frozen=True)
class UsageRecord:
    owner_id: str
    entity_id: Optional[str]
    token_count: int
    model_name: str
    cost_amount: float
    operation_type: OperationType
    created_at: datetime


@dataclass(frozen=True)
class UsageSummary:
    owner_id: str
    total_entities: int
    total_tokens: int
    total_cost: float
    last_generated: Optional[str]


class UsageLedger:
    """Append-only ledger of embedding token usage and cost. Rows are never updated or deleted."""

    def __init__(
        self,
        db_path: str | Path,
        *,
        rate_per_1k: float = settings.COST_PER_1K_TOKENS,
        logger: logging.Logger | None = None,
    ) -> None:
        self.db_path = str(db_path)
        self.rate_per_1k = rate_per_1k
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

    def cost_for(self, token_count: int) -> float:
        return calculate_cost(token_count, self.rate_per_1k)

    def record(
        self,
        *,
        owner_id: str,
        entity_id: Optional[str],
        token_count: int,
        model_name: str,
        operation_type: OperationType,
    ) -> UsageRecord:
        rec = UsageRecord(
            owner_id=owner_id,
            entity_id=entity_id,
            token_count=token_count,
            model_name=model_name,
            cost_amount=self.cost_for(token_count),
            operation_type=OperationType(operation_type),
            created_at=datetime.now(timezone.utc),
        )
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO embedding_costs "
                "(owner_id, entity_id, token_count, model, cost_usd, operation_type, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    rec.owner_id,
                    rec.entity_id,
                    rec.token_count,
                    rec.model_name,
                    rec.cost_amount,
                    rec.operation_type.value,
                    rec.created_at.isoformat(),
                ),
            )
        self.logger.debug(
            "Usage recorded: owner=%s entity=%s tokens=%d cost=%.6f (%s)",
            owner_id,
            entity_id,
            token_count,
            rec.cost_amount,
            rec.operation_type.value,
        )
        return rec

    def list_records(self, owner_id: str) -> List[UsageRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM embedding_costs WHERE owner_id = ? ORDER BY id", (owner_id,)
            ).fetchall()
        return [
            UsageRecord(
                owner_id=r["owner_id"],
                entity_id=r["entity_id"],
                token_count=r["token_count"],
                model_name=r["model"],
                cost_amount=r["cost_usd"],
                operation_type=OperationType(r["operation_type"]),
                created_at=datetime.fromisoformat(r["created_at"]),
            )
            for r in rows
        ]

    def summarize(self, owner_id: str) -> UsageSummary:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(DISTINCT entity_id) AS entities, "
                "COALESCE(SUM(token_count), 0) AS tokens, "
                "COALESCE(SUM(cost_usd), 0) AS cost, "
                "MAX(created_at) AS last_generated "
                "FROM embedding_costs WHERE owner_id = ?",
                (owner_id,),
            ).fetchone()
        return UsageSummary(
            owner_id=owner_id,
            total_entities=int(row["entities"] or 0),
            total_tokens=int(row["tokens"] or 0),
            total_cost=float(row["cost"] or 0.0),
            last_generated=row["last_generated"],
        )
