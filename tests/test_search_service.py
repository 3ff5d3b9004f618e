# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-26
# Description: test_search_service.py
# -----------------------------------------------------------------------------
import math
from datetime import datetime, timezone

import numpy as np
import pytest

from catalog.types import KeywordMatchResult
from embedding.EmbeddingErrors import EmptyContentError, NotFoundError, ValidationError
from embedding.EmbeddingRecord import ContentType, EmbeddingRecord
from search.SimilaritySearchEngine import SimilaritySearchEngine
from search.types import SearchFilters
from vectorstore.CallVectorStore import VectorMatch


def _at(dim, similarity):
    """Unit vector whose cosine similarity to e0 is `similarity`."""
    v = np.zeros(dim, dtype=np.float32)
    v[0] = similarity
    v[1] = math.sqrt(max(0.0, 1.0 - similarity ** 2))
    return v


def _e0(dim):
    return _at(dim, 1.0)


def _put(store, dim, call_id, similarity, owner_id="o1"):
    store.upsert(EmbeddingRecord(
        entity_id=call_id,
        owner_id=owner_id,
        vector=_at(dim, similarity),
        model_name="text-embedding-3-small",
        model_version=1,
        content_type=ContentType.TRANSCRIPT,
        content_hash=f"hash-{call_id}",
        token_count=10,
        generated_at=datetime.now(timezone.utc),
    ))


@pytest.fixture
def seeded(catalog, store, dim):
    catalog.add_call(call_id="c1", owner_id="o1", transcript="Caller disputes a late fee.",
                     call_time="2026-01-05T10:00:00", duration=300, sentiment="negative",
                     red_flags=["threatened to cancel"])
    catalog.add_call(call_id="c2", owner_id="o1", transcript="Question about billing cycle.",
                     call_time="2026-01-20T10:00:00", duration=60, sentiment="neutral",
                     action_items=["send statement"])
    catalog.add_call(call_id="c3", owner_id="o1", transcript="Appointment booking.",
                     call_time="2026-01-21T10:00:00", duration=45, sentiment="positive")
    catalog.add_call(call_id="x1", owner_id="o2", transcript="Billing billing billing.")

    _put(store, dim, "c1", 0.9)
    _put(store, dim, "c2", 0.8)
    _put(store, dim, "c3", 0.5)
    _put(store, dim, "x1", 1.0, owner_id="o2")


def test_vector_search_is_owner_scoped_thresholded_and_ordered(search_service, seeded, dim):
    resp = search_service.search("o1", query_vector=_e0(dim).tolist())

    assert [r.call_id for r in resp.results] == ["c1", "c2"]
    assert resp.results[0].similarity == pytest.approx(0.9, abs=1e-3)
    assert resp.results[0].has_red_flags is True
    assert resp.results[1].has_action_items is True
    assert resp.results[0].transcript_preview == "Caller disputes a late fee."
    assert resp.search_time_ms >= 0
    assert resp.total_results == 2


def test_repeated_searches_return_identical_order(search_service, seeded, dim):
    runs = [
        [r.call_id for r in search_service.search("o1", query_vector=_e0(dim), threshold=0.0).results]
        for _ in range(3)
    ]
    assert runs[0] == runs[1] == runs[2] == ["c1", "c2", "c3"]


def test_post_filters(search_service, seeded, dim):
    only_negative = search_service.search(
        "o1", query_vector=_e0(dim), threshold=0.0, filters=SearchFilters(sentiment={"negative"})
    )
    assert [r.call_id for r in only_negative.results] == ["c1"]

    recent = search_service.search(
        "o1", query_vector=_e0(dim), threshold=0.0, filters=SearchFilters(date_from=datetime(2026, 1, 10))
    )
    assert [r.call_id for r in recent.results] == ["c2", "c3"]

    with_actions = search_service.search(
        "o1", query_vector=_e0(dim), threshold=0.0, filters=SearchFilters(has_action_items=True)
    )
    assert [r.call_id for r in with_actions.results] == ["c2"]


def test_hybrid_boost_promotes_keyword_matches(search_service, seeded, fake_client, dim):
    fake_client.embeddings.vectors["billing"] = _e0(dim).tolist()

    resp = search_service.search("o1", query_text="billing")

    assert [r.call_id for r in resp.results] == ["c2", "c1"]
    assert resp.results[0].similarity == pytest.approx(0.96, abs=1e-3)
    assert resp.keyword_fallback is False


def test_hybrid_boost_reaches_results_beyond_first_hundred_keyword_hits(search_service, catalog, store, fake_client, dim):
    for i in range(100):
        catalog.add_call(call_id=f"a{i:03d}", owner_id="o1", transcript="billing billing")
    catalog.add_call(call_id="zz-target", owner_id="o1", transcript="billing dispute")
    _put(store, dim, "zz-target", 0.8)
    fake_client.embeddings.vectors["billing"] = _e0(dim).tolist()

    resp = search_service.search("o1", query_text="billing")

    assert [r.call_id for r in resp.results] == ["zz-target"]
    assert resp.results[0].similarity == pytest.approx(0.96, abs=1e-3)


def test_stopwords_do_not_trigger_the_keyword_boost(search_service, catalog, store, fake_client, dim):
    catalog.add_call(call_id="appt", owner_id="o1", transcript="Patient wants an appointment.")
    _put(store, dim, "appt", 0.8)
    fake_client.embeddings.vectors["a refund"] = _e0(dim).tolist()

    resp = search_service.search("o1", query_text="a refund")

    assert resp.results[0].similarity == pytest.approx(0.8, abs=1e-3)


def test_keyword_failure_falls_back_to_vector_order(search_service, seeded, catalog, fake_client, dim, monkeypatch):
    fake_client.embeddings.vectors["billing"] = _e0(dim).tolist()
    monkeypatch.setattr(catalog, "keyword_search", lambda *a, **k: KeywordMatchResult.failed("fts down"))

    resp = search_service.search("o1", query_text="billing")

    assert [r.call_id for r in resp.results] == ["c1", "c2"]
    assert resp.keyword_fallback is True


def test_query_embeddings_are_cached(search_service, seeded, fake_client):
    search_service.search("o1", query_text="late fee")
    search_service.search("o1", query_text="  late   fee ")

    assert fake_client.embeddings.inputs == ["late fee"]
    assert search_service.query_cache.stats().hits == 1


def test_searches_are_logged(search_service, seeded, query_log, dim):
    search_service.search("o1", query_vector=_e0(dim))
    search_service.find_similar_to("c1", "o1")

    assert query_log.summarize("o1").searches_by_type == {"semantic": 1, "similar": 1}


def test_find_similar_excludes_source(search_service, seeded):
    resp = search_service.find_similar_to("c1", "o1", threshold=0.0)

    ids = [r.call_id for r in resp.results]
    assert "c1" not in ids
    assert ids[0] == "c2"


def test_find_similar_requires_an_embedding(search_service, seeded):
    with pytest.raises(NotFoundError):
        search_service.find_similar_to("nope", "o1")
    # another owner's call is invisible
    with pytest.raises(NotFoundError):
        search_service.find_similar_to("x1", "o1")


def test_invalid_requests(search_service, seeded, dim):
    with pytest.raises(ValidationError):
        search_service.search("o1")
    with pytest.raises(EmptyContentError):
        search_service.search("o1", query_text="   ")
    with pytest.raises(ValidationError):
        search_service.search("o1", query_vector=[1.0, 0.0])
    with pytest.raises(ValidationError):
        search_service.search("o1", query_vector=_e0(dim), threshold=1.5)


# ---------------------------------------------------------------------------
# Engine logic against a scripted store (exact similarity values)
# ---------------------------------------------------------------------------
class ScriptedStore:
    def __init__(self, matches):
        self.matches = matches
        self.requested = []

    def query(self, vector, owner_id, n_results, content_type=ContentType.TRANSCRIPT):
        self.requested.append(n_results)
        return list(self.matches)


def _engine(catalog, matches):
    return SimilaritySearchEngine(store=ScriptedStore(matches), catalog=catalog)


def test_threshold_is_strictly_greater_than(catalog, dim):
    for cid in ("a", "b"):
        catalog.add_call(call_id=cid, owner_id="o1", transcript=cid)
    engine = _engine(catalog, [
        VectorMatch("a", ContentType.TRANSCRIPT, 0.7),
        VectorMatch("b", ContentType.TRANSCRIPT, 0.7001),
    ])

    assert [r.call_id for r in engine.search(_e0(dim), "o1", threshold=0.7)] == ["b"]


def test_ties_break_by_call_id_and_limit_applies(catalog, dim):
    for cid in ("a", "b", "c"):
        catalog.add_call(call_id=cid, owner_id="o1", transcript=cid)
    engine = _engine(catalog, [
        VectorMatch("c", ContentType.TRANSCRIPT, 0.8),
        VectorMatch("b", ContentType.TRANSCRIPT, 0.8),
        VectorMatch("a", ContentType.TRANSCRIPT, 0.8),
    ])

    assert [r.call_id for r in engine.search(_e0(dim), "o1", limit=2)] == ["a", "b"]


def test_limit_is_clamped(catalog, dim):
    engine = _engine(catalog, [])

    engine.search(_e0(dim), "o1", limit=0)
    engine.search(_e0(dim), "o1", limit=1000)
    engine.search(_e0(dim), "o1")

    assert engine.store.requested == [1, 100, 20]


def test_previews_are_truncated(catalog, dim):
    catalog.add_call(call_id="long", owner_id="o1", transcript="x" * 500)
    engine = _engine(catalog, [VectorMatch("long", ContentType.TRANSCRIPT, 0.95)])

    preview = engine.search(_e0(dim), "o1")[0].transcript_preview

    assert preview == "x" * 200 + "..."
