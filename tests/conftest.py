# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-12
# Description: conftest.py
# -----------------------------------------------------------------------------

import hashlib
import sys
import uuid
from pathlib import Path
from types import SimpleNamespace

import numpy as np
import pytest

# add project root to sys.path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import chromadb  # noqa: E402

from catalog.CallCatalog import CallCatalog  # noqa: E402
from config.Config import Config  # noqa: E402
from embedding.CallEmbedder import CallEmbedder  # noqa: E402
from ledger.SearchQueryLog import SearchQueryLog  # noqa: E402
from ledger.UsageLedger import UsageLedger  # noqa: E402
from search.SimilaritySearchEngine import SimilaritySearchEngine  # noqa: E402
from services.EmbeddingService import EmbeddingService  # noqa: E402
from services.SearchService import SearchService  # noqa: E402
from vectorstore.ChromaCallVectorStore import ChromaCallVectorStore  # noqa: E402

TEST_DIM = 8


def bag_of_words_vector(text: str, dim: int = TEST_DIM) -> list:
    """Deterministic stand-in embedding: texts sharing words point the same way."""
    vec = np.zeros(dim, dtype=np.float32)
    for word in text.lower().split():
        idx = int(hashlib.sha256(word.encode("utf-8")).hexdigest(), 16) % dim
        vec[idx] += 1.0
    if not vec.any():
        vec[0] = 1.0
    return (vec / np.linalg.norm(vec)).tolist()


class FakeEmbeddingsAPI:
    """Mimics client.embeddings.create() of the OpenAI SDK."""

    def __init__(self, dim: int):
        self.dim = dim
        self.inputs = []
        self.errors = []       # raised in order before any success
        self.vectors = {}      # exact input text -> vector override

    def create(self, *, model, input, encoding_format="float"):
        self.inputs.append(input)
        if self.errors:
            raise self.errors.pop(0)
        vector = self.vectors.get(input) or bag_of_words_vector(input, self.dim)
        return SimpleNamespace(
            data=[SimpleNamespace(embedding=list(vector), index=0)],
            model=model,
            usage=SimpleNamespace(prompt_tokens=max(1, len(input) // 4), total_tokens=max(1, len(input) // 4)),
        )


class FakeOpenAIClient:
    def __init__(self, dim: int = TEST_DIM):
        self.embeddings = FakeEmbeddingsAPI(dim)


@pytest.fixture
def dim() -> int:
    return TEST_DIM


@pytest.fixture
def cfg(tmp_path) -> Config:
    return Config(
        openai_api_key="sk-test",
        openai_base_url="",
        openai_embed_model="text-embedding-3-small",
        chroma_endpoint="",
        chroma_api_key="",
        chroma_tenant="",
        chroma_database="",
        chroma_path=str(tmp_path / "chroma"),
        chroma_collection="call_embeddings",
        calls_db_path=str(tmp_path / "calls.db"),
    )


@pytest.fixture
def fake_client() -> FakeOpenAIClient:
    return FakeOpenAIClient(TEST_DIM)


@pytest.fixture
def sleeps() -> list:
    return []


@pytest.fixture
def embedder(cfg, fake_client, sleeps) -> CallEmbedder:
    return CallEmbedder(cfg, client=fake_client, dimensions=TEST_DIM, sleep=sleeps.append)


@pytest.fixture
def store() -> ChromaCallVectorStore:
    # ephemeral clients share one in-process system; a unique name isolates each test
    client = chromadb.EphemeralClient()
    return ChromaCallVectorStore(
        client=client,
        collection_name=f"test-{uuid.uuid4().hex}",
        dimensions=TEST_DIM,
    )


@pytest.fixture
def catalog(cfg) -> CallCatalog:
    return CallCatalog(cfg.calls_db_path)


@pytest.fixture
def ledger(cfg) -> UsageLedger:
    return UsageLedger(cfg.calls_db_path)


@pytest.fixture
def query_log(cfg) -> SearchQueryLog:
    return SearchQueryLog(cfg.calls_db_path)


@pytest.fixture
def embedding_service(embedder, store, ledger, catalog) -> EmbeddingService:
    return EmbeddingService(embedder=embedder, store=store, ledger=ledger, catalog=catalog)


@pytest.fixture
def search_engine(store, catalog) -> SimilaritySearchEngine:
    return SimilaritySearchEngine(store=store, catalog=catalog)


@pytest.fixture
def search_service(embedder, search_engine, catalog, store, query_log) -> SearchService:
    return SearchService(
        embedder=embedder,
        engine=search_engine,
        catalog=catalog,
        store=store,
        query_log=query_log,
    )
