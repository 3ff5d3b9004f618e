# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-26
# Description: test_embedding_service.py
# -----------------------------------------------------------------------------
import sqlite3
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from catalog.CallCatalog import TOO_SHORT_PLACEHOLDER
from embedding.CallEmbedder import CallEmbedder
from embedding.EmbeddingErrors import EmptyContentError, NotFoundError, ValidationError
from embedding.EmbeddingRecord import ContentType, OperationType
from normalizer.ContentFingerprinter import content_hash
from services.EmbeddingService import EmbeddingService


def test_edit_invalidates_cached_embedding(embedding_service, catalog, store, ledger, fake_client):
    catalog.add_call(call_id="call-1", owner_id="o1", transcript="Patient asked about billing.")

    first = embedding_service.generate_for_call("call-1", "o1")
    assert first.cached is False
    assert first.embedding_id == "call-1::transcript"
    assert first.cost == pytest.approx(first.token_count / 1000 * 0.00002)

    second = embedding_service.generate_for_call("call-1", "o1")
    assert second.cached is True
    assert second.content_hash == first.content_hash
    assert len(fake_client.embeddings.inputs) == 1

    catalog.update_transcript("call-1", "Patient asked about billing. They would like a refund.")
    third = embedding_service.generate_for_call("call-1", "o1")

    assert third.cached is False
    assert third.content_hash != first.content_hash
    assert store.collection.count() == 1
    assert store.get_current("call-1", ContentType.TRANSCRIPT).content_hash == third.content_hash
    assert len(ledger.list_records("o1")) == 2


def test_unchanged_content_is_idempotent(embedding_service, fake_client, ledger):
    results = [
        embedding_service.generate_embedding("c1", "o1", "Caller: hello there") for _ in range(3)
    ]

    assert [r.cached for r in results] == [False, True, True]
    assert len({r.embedding_id for r in results}) == 1
    assert len(fake_client.embeddings.inputs) == 1
    assert len(ledger.list_records("o1")) == 1
    # cache hits carry no cost
    assert results[1].cost is None


def test_hash_is_taken_over_normalized_text(embedding_service):
    a = embedding_service.generate_embedding("c1", "o1", "[00:00:01] Agent: hello   there")
    b = embedding_service.generate_embedding("c1", "o1", "hello there")
    assert b.cached is True
    assert a.content_hash == content_hash("hello there")


def test_empty_content_is_rejected_before_any_side_effect(embedding_service, fake_client, ledger, store):
    with pytest.raises(EmptyContentError):
        embedding_service.generate_embedding("c1", "o1", "   ")

    assert fake_client.embeddings.inputs == []
    assert ledger.list_records("o1") == []
    assert store.collection.count() == 0


def test_force_regenerate_bypasses_cache(embedding_service, fake_client, ledger):
    embedding_service.generate_embedding("c1", "o1", "hello")
    res = embedding_service.generate_embedding("c1", "o1", "hello", force_regenerate=True)

    assert res.cached is False
    assert len(fake_client.embeddings.inputs) == 2
    ops = [r.operation_type for r in ledger.list_records("o1")]
    assert ops == [OperationType.GENERATE, OperationType.REGENERATE]


def test_expired_embedding_is_regenerated(embedding_service, store, fake_client):
    embedding_service.generate_embedding("c1", "o1", "hello")
    rec = store.get_current("c1", ContentType.TRANSCRIPT)
    rec.generated_at = datetime.now(timezone.utc) - timedelta(days=45)
    store.upsert(rec)

    res = embedding_service.generate_embedding("c1", "o1", "hello")

    assert res.cached is False
    assert len(fake_client.embeddings.inputs) == 2


def test_model_change_bumps_version_and_keeps_created_at(cfg, fake_client, store, ledger, dim):
    first = EmbeddingService(
        embedder=CallEmbedder(cfg, client=fake_client, dimensions=dim), store=store, ledger=ledger
    )
    first.generate_embedding("c1", "o1", "hello")
    original = store.get_current("c1", ContentType.TRANSCRIPT)

    upgraded = EmbeddingService(
        embedder=CallEmbedder(
            replace(cfg, openai_embed_model="text-embedding-3-large"), client=fake_client, dimensions=dim
        ),
        store=store,
        ledger=ledger,
    )
    upgraded.generate_embedding("c1", "o1", "hello", force_regenerate=True)
    current = store.get_current("c1", ContentType.TRANSCRIPT)

    assert current.model_name == "text-embedding-3-large"
    assert current.model_version == original.model_version + 1
    assert current.created_at == original.created_at
    assert current.generated_at >= original.generated_at


def test_embedding_owned_by_someone_else_is_not_overwritten(embedding_service, store):
    embedding_service.generate_embedding("c1", "o1", "hello")

    with pytest.raises(NotFoundError):
        embedding_service.generate_embedding("c1", "o2", "something else")
    assert store.get_current("c1", ContentType.TRANSCRIPT).owner_id == "o1"


def test_ledger_failure_does_not_fail_the_write(embedding_service, ledger, store, monkeypatch):
    def broken(**kwargs):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(ledger, "record", broken)

    res = embedding_service.generate_embedding("c1", "o1", "hello")

    assert res.cached is False
    assert store.get_current("c1", ContentType.TRANSCRIPT) is not None


def test_call_lookup_rules(embedding_service, catalog):
    catalog.add_call(call_id="busy", owner_id="o1", transcript=None, transcription_status="processing")
    catalog.add_call(call_id="short", owner_id="o1", transcript=TOO_SHORT_PLACEHOLDER)
    catalog.add_call(call_id="mine", owner_id="o1", transcript="hello")

    with pytest.raises(ValidationError):
        embedding_service.generate_for_call("busy", "o1")
    with pytest.raises(EmptyContentError):
        embedding_service.generate_for_call("short", "o1")
    with pytest.raises(NotFoundError):
        embedding_service.generate_for_call("missing", "o1")
    with pytest.raises(NotFoundError):
        embedding_service.generate_for_call("mine", "o2")


def test_summary_and_combined_content(embedding_service, catalog, fake_client):
    catalog.add_call(call_id="c1", owner_id="o1", transcript="Agent: hi", summary="Billing question")

    embedding_service.generate_for_call("c1", "o1", ContentType.SUMMARY)
    embedding_service.generate_for_call("c1", "o1", ContentType.COMBINED)

    assert fake_client.embeddings.inputs == [
        "Billing question",
        "Billing question Billing question hi",
    ]


def test_summary_missing_is_empty_content(embedding_service, catalog):
    catalog.add_call(call_id="c1", owner_id="o1", transcript="hello", summary=None)
    with pytest.raises(EmptyContentError):
        embedding_service.generate_for_call("c1", "o1", ContentType.SUMMARY)


def test_purge_older_than(embedding_service, store):
    embedding_service.generate_embedding("old", "o1", "hello")
    embedding_service.generate_embedding("new", "o1", "world")
    rec = store.get_current("old", ContentType.TRANSCRIPT)
    rec.generated_at = datetime.now(timezone.utc) - timedelta(days=100)
    store.upsert(rec)

    assert embedding_service.purge_older_than(90, owner_id="o1") == 1
    assert store.list_entity_ids("o1") == {"new"}

    with pytest.raises(ValidationError):
        embedding_service.purge_older_than(-1)
