"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

import chromadb

from pdf_rag.config import settings
from pdf_rag.errors import StoreUnavailable
from pdf_rag.retrieval.base import VectorStoreBase
from pdf_rag.retrieval.models import Citation, RetrievalResult

if TYPE_CHECKING:
    from pdf_rag.ingestion.models import EmbeddingRecord

logger = logging.getLogger(__name__)


def _flatten_metadata(metadata: dict[str, Any]) -> dict[str, str | int | float | bool]:
    """Chroma metadata values must be flat str/int/float/bool."""
    return {k: v for k, v in metadata.items() if isinstance(v, (str, int, float, bool))}


def _sort_key(result: RetrievalResult) -> tuple[float, int, int]:
    """Descending score; ties by upsert call, then position within the call."""
    meta = result.citation.metadata
    return (-result.score, int(meta.get("inserted_at", 0)), int(meta.get("insert_seq", 0)))


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Each index name maps to a Chroma collection using cosine distance.

    Parameters
    ----------
    index_name:
        Default collection name.
    client:
        A ready ``chromadb`` client. When *None* one is created on first use:
        a ``PersistentClient`` if *persist_dir* is set, else an ``HttpClient``.
    host / port:
        Chroma server location for the HTTP client.
    persist_dir:
        Directory for an embedded persistent store.
    upsert_batch_size:
        Max records per upsert call (Chroma cap ≈ 41 666).
    """

    def __init__(
        self,
        index_name: str = settings.vector_index_name,
        *,
        client: Any | None = None,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        persist_dir: str = settings.chroma_persist_dir,
        upsert_batch_size: int = settings.upsert_batch_size,
    ) -> None:
        super().__init__(index_name)
        self._client = client
        self._host = host
        self._port = port
        self._persist_dir = persist_dir
        self._upsert_batch_size = upsert_batch_size
        self._collections: dict[str, Any] = {}

    # -- internals ------------------------------------------------------------

    def _get_client(self) -> Any:
        if self._client is None:
            try:
                if self._persist_dir:
                    self._client = chromadb.PersistentClient(path=self._persist_dir)
                else:
                    self._client = chromadb.HttpClient(host=self._host, port=self._port)
            except Exception as exc:
                raise StoreUnavailable(f"Cannot connect to Chroma at {self._host}:{self._port}: {exc}") from exc
        return self._client

    def _collection(self, index_name: str | None) -> Any:
        name = index_name or self.index_name
        if name not in self._collections:
            try:
                self._collections[name] = self._get_client().get_or_create_collection(
                    name=name,
                    metadata={"hnsw:space": "cosine"},
                    embedding_function=None,
                )
            except StoreUnavailable:
                raise
            except Exception as exc:
                raise StoreUnavailable(f"Cannot open Chroma collection {name!r}: {exc}") from exc
        return self._collections[name]

    # -- VectorStoreBase overrides --------------------------------------------

    def upsert(self, records: list[EmbeddingRecord], *, index_name: str | None = None) -> int:
        if not records:
            return 0
        collection = self._collection(index_name)
        inserted_at = time.time_ns()

        ids = [r.record_id for r in records]
        embeddings = [r.vector for r in records]
        documents = [r.text for r in records]
        metadatas = [
            _flatten_metadata(
                {
                    **r.metadata,
                    "document_id": r.document_id,
                    "chunk_index": r.chunk_index,
                    "inserted_at": inserted_at,
                    "insert_seq": seq,
                }
            )
            for seq, r in enumerate(records)
        ]

        batches = 0
        for start in range(0, len(ids), self._upsert_batch_size):
            end = start + self._upsert_batch_size
            try:
                collection.upsert(
                    ids=ids[start:end],
                    embeddings=embeddings[start:end],
                    documents=documents[start:end],
                    metadatas=metadatas[start:end],
                )
            except Exception as exc:
                raise StoreUnavailable(f"Upsert into {collection.name!r} failed: {exc}") from exc
            batches += 1
            logger.debug("upserted batch %d (%d-%d)", batches, start, min(end, len(ids)))

        logger.info("Upserted %d records into '%s' (%d batches)", len(ids), collection.name, batches)
        return len(ids)

    def query(
        self,
        vector: list[float],
        *,
        k: int = 4,
        index_name: str | None = None,
    ) -> list[RetrievalResult]:
        if k <= 0:
            return []
        collection = self._collection(index_name)
        try:
            total = collection.count()
            if total == 0:
                return []
            results = collection.query(
                query_embeddings=[vector],
                n_results=min(k, total),
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise StoreUnavailable(f"Query against {collection.name!r} failed: {exc}") from exc

        ids = results.get("ids", [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        hits: list[RetrievalResult] = []
        for rid, content, meta, dist in zip(ids, docs, metas, distances):
            meta = dict(meta or {})
            hits.append(
                RetrievalResult(
                    content=content or "",
                    # cosine distance → similarity
                    score=1.0 - float(dist),
                    citation=Citation(
                        record_id=rid,
                        document_id=meta.get("document_id"),
                        source=meta.get("source", meta.get("document_id", "unknown")),
                        chunk_index=meta.get("chunk_index"),
                        metadata=meta,
                    ),
                )
            )
        hits.sort(key=_sort_key)
        return hits[:k]

    def count(self, *, document_id: str | None = None, index_name: str | None = None) -> int:
        collection = self._collection(index_name)
        try:
            if document_id is None:
                return collection.count()
            return len(collection.get(where={"document_id": document_id}, include=[])["ids"])
        except Exception as exc:
            raise StoreUnavailable(f"Count on {collection.name!r} failed: {exc}") from exc

    def health_check(self) -> bool:
        try:
            self._get_client().heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    def delete(self, ids: list[str], *, index_name: str | None = None) -> None:
        collection = self._collection(index_name)
        try:
            collection.delete(ids=ids)
        except Exception as exc:
            raise StoreUnavailable(f"Delete from {collection.name!r} failed: {exc}") from exc

    def close(self) -> None:
        self._collections.clear()
        self._client = None
