# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-26
# Description: test_usage_ledger.py
# -----------------------------------------------------------------------------
import sqlite3
from datetime import date, datetime, timezone

import pytest

from embedding.EmbeddingRecord import OperationType
from ledger.UsageLedger import calculate_cost


def test_cost_is_linear_in_tokens():
    assert calculate_cost(0) == 0.0
    assert calculate_cost(1000) == pytest.approx(0.00002)
    assert calculate_cost(1500) == pytest.approx(0.00003)
    assert calculate_cost(500, rate_per_1k=0.001) == pytest.approx(0.0005)


def test_record_and_summarize(ledger):
    ledger.record(owner_id="o1", entity_id="c1", token_count=1000,
                  model_name="text-embedding-3-small", operation_type=OperationType.GENERATE)
    ledger.record(owner_id="o1", entity_id="c1", token_count=500,
                  model_name="text-embedding-3-small", operation_type=OperationType.REGENERATE)
    ledger.record(owner_id="o1", entity_id="c2", token_count=250,
                  model_name="text-embedding-3-small", operation_type="batch")
    ledger.record(owner_id="o2", entity_id="c9", token_count=9999,
                  model_name="text-embedding-3-small", operation_type=OperationType.GENERATE)

    records = ledger.list_records("o1")
    assert [r.operation_type for r in records] == [
        OperationType.GENERATE,
        OperationType.REGENERATE,
        OperationType.BATCH,
    ]
    assert records[0].cost_amount == pytest.approx(0.00002)

    summary = ledger.summarize("o1")
    assert summary.total_entities == 2
    assert summary.total_tokens == 1750
    assert summary.total_cost == pytest.approx(1750 / 1000 * 0.00002)
    assert summary.last_generated is not None


def test_summary_for_unknown_owner_is_zero(ledger):
    summary = ledger.summarize("nobody")
    assert summary.total_entities == 0
    assert summary.total_tokens == 0
    assert summary.total_cost == 0.0
    assert summary.last_generated is None


def test_negative_tokens_are_refused(ledger):
    with pytest.raises(sqlite3.IntegrityError):
        ledger.record(owner_id="o1", entity_id="c1", token_count=-1,
                      model_name="m", operation_type=OperationType.GENERATE)


def test_search_query_log_summary(query_log):
    day1 = datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)
    day2 = datetime(2026, 1, 11, 9, 0, tzinfo=timezone.utc)
    query_log.record(owner_id="o1", query_text="billing", query_type="hybrid",
                     result_count=3, search_time_ms=10, filters={"sentiment": ["negative"]}, created_at=day1)
    query_log.record(owner_id="o1", query_text="billing", query_type="hybrid",
                     result_count=1, search_time_ms=30, created_at=day2)
    query_log.record(owner_id="o1", query_text="similar:c1", query_type="similar",
                     result_count=0, search_time_ms=5, created_at=day2)
    query_log.record(owner_id="o2", query_text="other", query_type="semantic",
                     result_count=0, search_time_ms=1, created_at=day2)

    summary = query_log.summarize("o1")

    assert summary.total_searches == 3
    assert summary.unique_queries == 2
    assert summary.avg_search_time_ms == pytest.approx(15.0)
    assert summary.success_rate == pytest.approx(2 / 3, abs=1e-4)
    assert summary.searches_by_type == {"hybrid": 2, "similar": 1}
    assert summary.searches_by_day == [("2026-01-10", 1), ("2026-01-11", 2)]

    top = summary.popular_queries[0]
    assert (top.query, top.search_count, top.avg_result_count) == ("billing", 2, 2.0)
    assert top.last_searched.startswith("2026-01-11")
    assert [q.query for q in summary.zero_result_queries] == ["similar:c1"]


def test_search_query_log_date_bounds_are_inclusive_days(query_log):
    for day in (9, 10, 11, 12):
        query_log.record(owner_id="o1", query_text=f"q{day}", query_type="semantic", result_count=1,
                         search_time_ms=1, created_at=datetime(2026, 1, day, 23, 30, tzinfo=timezone.utc))

    summary = query_log.summarize("o1", date_from=date(2026, 1, 10), date_to=date(2026, 1, 11))

    assert summary.total_searches == 2
    assert sorted(q.query for q in summary.popular_queries) == ["q10", "q11"]
    assert query_log.summarize("o1", limit=1).popular_queries[0].query == "q12"
    assert query_log.summarize("nobody").total_searches == 0
