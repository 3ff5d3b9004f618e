# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-22
# Description: ChromaCallVectorStore
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

import chromadb
import numpy as np

import settings
from config.Config import Config
from embedding.EmbeddingRecord import ContentType, EmbeddingRecord, as_vector, make_embedding_id
from utility.logging_utils import get_class_logger
from vectorstore.CallVectorStore import CallVectorStore, VectorMatch


def build_chroma_client(cfg: Config) -> Any:
    """Chroma Cloud when an API key is configured, a local persistent client otherwise."""
    if cfg.use_chroma_cloud:
        return chromadb.CloudClient(
            tenant=cfg.chroma_tenant,
            database=cfg.chroma_database,
            api_key=cfg.chroma_api_key,
        )
    return chromadb.PersistentClient(path=cfg.chroma_path)


def _where(**conditions: Any) -> Dict[str, Any]:
    clauses = [{k: v} for k, v in conditions.items() if v is not None]
    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _parse_dt(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    dt = datetime.fromisoformat(value)
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


@dataclass
class ChromaCallVectorStore(CallVectorStore):
    """
    One Chroma collection (cosine space) holding one vector per (call, content type).

    The record id is the compound key, so collection.upsert() is the atomic
    insert-or-replace: two concurrent generations for the same key leave one row.
    """
    client: Any
    collection_name: str = "call_embeddings"
    dimensions: int = settings.EMBEDDING_DIMENSIONS
    logger: Any = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)

        self.collection = self.client.get_or_create_collection(
            name=self.collection_name,
            metadata={"hnsw:space": "cosine"},
        )
        self.logger.info("Chroma collection ready: '%s' (dim=%d)", self.collection_name, self.dimensions)

    @classmethod
    def from_config(cls, cfg: Config, **kwargs: Any) -> "ChromaCallVectorStore":
        cls_logger = get_class_logger(cls)
        cls_logger.info("Initialising Chroma client (%s)", "cloud" if cfg.use_chroma_cloud else "local")
        return cls(
            client=build_chroma_client(cfg),
            collection_name=cfg.chroma_collection or "call_embeddings",
            **kwargs,
        )

    def test_connection(self) -> bool:
        try:
            # count() is cheap and exercises the connection + auth
            _ = self.collection.count()
            return True
        except Exception as e:
            self.logger.error("Chroma connection failed: %s", e)
            return False

    # -------------------------------------------------------------------------
    def upsert(self, record: EmbeddingRecord) -> str:
        record.validate_dimension(self.dimensions)

        now = datetime.now(timezone.utc)
        created_at = record.created_at or now
        metadata: Dict[str, Any] = {
            "entity_id": record.entity_id,
            "owner_id": record.owner_id,
            "content_type": record.content_type.value,
            "content_hash": record.content_hash,
            "model_name": record.model_name,
            "model_version": int(record.model_version),
            "token_count": int(record.token_count),
            "generated_at": record.generated_at.isoformat(),
            "generated_at_ts": record.generated_at.timestamp(),
            "created_at": created_at.isoformat(),
            "updated_at": now.isoformat(),
        }

        self.collection.upsert(
            ids=[record.embedding_id],
            embeddings=[record.vector.tolist()],
            metadatas=[metadata],
        )
        record.updated_at = now
        self.logger.info(
            "Upserted embedding '%s' (hash=%s, tokens=%d)",
            record.embedding_id,
            record.content_hash[:12],
            record.token_count,
        )
        return record.embedding_id

    def get_current(
            self,
            entity_id: str,
            content_type: ContentType,
            owner_id: Optional[str] = None,
    ) -> Optional[EmbeddingRecord]:
        embedding_id = make_embedding_id(entity_id, content_type)
        res = self.collection.get(ids=[embedding_id], include=["embeddings", "metadatas"])

        ids = res.get("ids") or []
        if not ids:
            return None

        md = (res.get("metadatas") or [None])[0] or {}
        if owner_id is not None and md.get("owner_id") != owner_id:
            self.logger.debug("Embedding '%s' exists but belongs to another owner", embedding_id)
            return None

        embeddings = res.get("embeddings")
        if embeddings is None or len(embeddings) == 0:
            return None

        return self._to_record(md, embeddings[0])

    def delete_older_than(self, older_than: datetime, owner_id: Optional[str] = None) -> int:
        if older_than.tzinfo is None:
            older_than = older_than.replace(tzinfo=timezone.utc)

        where = _where(owner_id=owner_id, generated_at_ts={"$lt": older_than.timestamp()})
        self.logger.info("Deleting embeddings generated before %s (owner=%s)", older_than.isoformat(), owner_id)

        res = self.collection.get(where=where, include=[])
        ids: List[str] = list(dict.fromkeys(res.get("ids") or []))
        if not ids:
            self.logger.info("No embeddings older than %s", older_than.isoformat())
            return 0

        self.collection.delete(ids=ids)
        self.logger.info("Deleted %d embeddings from collection '%s'", len(ids), self.collection_name)
        return len(ids)

    def query(
            self,
            vector: np.ndarray,
            owner_id: str,
            n_results: int,
            content_type: ContentType = ContentType.TRANSCRIPT,
    ) -> List[VectorMatch]:
        vec = as_vector(vector, self.dimensions)
        content_type = ContentType(content_type)

        if n_results <= 0 or self.collection.count() == 0:
            return []

        where = _where(owner_id=owner_id, content_type=content_type.value)
        self.logger.debug("Chroma query: n_results=%d where=%s", n_results, where)

        res = self.collection.query(
            query_embeddings=[vec.tolist()],
            n_results=n_results,
            where=where,
            include=["metadatas", "distances"],
        )

        ids0 = (res.get("ids") or [[]])[0]
        metas0 = (res.get("metadatas") or [[]])[0]
        dists0 = (res.get("distances") or [[]])[0]

        matches: List[VectorMatch] = []
        for i, embedding_id in enumerate(ids0):
            md = metas0[i] if i < len(metas0) and metas0[i] else {}
            dist = dists0[i] if i < len(dists0) else None
            if dist is None:
                continue
            matches.append(
                VectorMatch(
                    entity_id=md.get("entity_id") or embedding_id.split("::", 1)[0],
                    content_type=ContentType(md.get("content_type", content_type.value)),
                    # cosine space: distance = 1 - cosine similarity
                    similarity=1.0 - float(dist),
                )
            )

        self.logger.info("Chroma search complete: %d matches (requested %d)", len(matches), n_results)
        return matches

    def list_entity_ids(self, owner_id: str, content_type: Optional[ContentType] = None) -> Set[str]:
        ct = ContentType(content_type).value if content_type is not None else None
        res = self.collection.get(where=_where(owner_id=owner_id, content_type=ct), include=["metadatas"])
        return {
            md["entity_id"]
            for md in (res.get("metadatas") or [])
            if isinstance(md, dict) and isinstance(md.get("entity_id"), str)
        }

    # -------------------------------------------------------------------------
    def _to_record(self, md: Dict[str, Any], vector: Any) -> EmbeddingRecord:
        generated_at = _parse_dt(md.get("generated_at")) or datetime.now(timezone.utc)
        return EmbeddingRecord(
            entity_id=md["entity_id"],
            owner_id=md["owner_id"],
            vector=np.asarray(vector, dtype=np.float32),
            model_name=md.get("model_name", ""),
            model_version=int(md.get("model_version", 1)),
            content_type=ContentType(md["content_type"]),
            content_hash=md.get("content_hash", ""),
            token_count=int(md.get("token_count", 0)),
            generated_at=generated_at,
            created_at=_parse_dt(md.get("created_at")),
            updated_at=_parse_dt(md.get("updated_at")),
        )
