"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import math
from pathlib import Path

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from pdf_rag.errors import StorageError, StoreUnavailable
from pdf_rag.ingestion.embedder import EmbeddingGateway
from pdf_rag.ingestion.models import Document, EmbeddingRecord
from pdf_rag.retrieval.base import VectorStoreBase
from pdf_rag.retrieval.models import Citation, RetrievalResult
from pdf_rag.storage import ObjectStorage


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorStore(VectorStoreBase):
    """Dict-backed store; dict order doubles as insertion order."""

    def __init__(self, index_name: str = "default") -> None:
        super().__init__(index_name)
        self.indexes: dict[str, dict[str, EmbeddingRecord]] = {}
        self.available = True
        self.upsert_calls = 0

    def _index(self, index_name: str | None) -> dict[str, EmbeddingRecord]:
        if not self.available:
            raise StoreUnavailable("store is down")
        return self.indexes.setdefault(index_name or self.index_name, {})

    def upsert(self, records: list[EmbeddingRecord], *, index_name: str | None = None) -> int:
        index = self._index(index_name)
        self.upsert_calls += 1
        for record in records:
            index[record.record_id] = record
        return len(records)

    def query(self, vector: list[float], *, k: int = 4, index_name: str | None = None) -> list[RetrievalResult]:
        hits = [
            RetrievalResult(
                content=r.text,
                score=_cosine(vector, r.vector),
                citation=Citation(record_id=r.record_id, document_id=r.document_id, chunk_index=r.chunk_index),
            )
            for r in self._index(index_name).values()
        ]
        hits.sort(key=lambda h: -h.score)
        return hits[:k]

    def count(self, *, document_id: str | None = None, index_name: str | None = None) -> int:
        records = self._index(index_name).values()
        return sum(1 for r in records if document_id is None or r.document_id == document_id)

    def health_check(self) -> bool:
        return self.available


class FakeObjectStorage(ObjectStorage):
    """Keeps objects in a dict and "downloads" by writing bytes to disk."""

    def __init__(self, objects: dict[str, bytes] | None = None, prefix: str = "pdfs/") -> None:
        super().__init__("test-bucket", prefix)
        self.objects: dict[str, bytes] = dict(objects or {})
        self.fail = False
        self.closed = False

    def download_matching(self, file_name: str, destination: Path) -> list[Path]:
        if self.fail:
            raise StorageError("bucket unreachable")
        wanted = self.object_name(file_name)
        paths = []
        for name, data in self.objects.items():
            if name == wanted and name.lower().endswith(".pdf"):
                target = destination / Path(name).name
                target.write_bytes(data)
                paths.append(target)
        return paths

    def upload(self, file_name: str, data: bytes, content_type: str | None = None) -> str:
        if self.fail:
            raise StorageError("permission denied")
        name = self.object_name(Path(file_name).name)
        self.objects[name] = data
        return name

    def close(self) -> None:
        self.closed = True


def text_loader(path: Path) -> list[Document]:
    """Loader stand-in: every ``*.pdf`` file holds plain UTF-8 text."""
    return [
        Document(document_id=p.name, text=p.read_text(encoding="utf-8"), metadata={"source": str(p)})
        for p in sorted(Path(path).glob("*.pdf"))
    ]


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def fake_embeddings() -> DeterministicFakeEmbedding:
    return DeterministicFakeEmbedding(size=16)


@pytest.fixture()
def gateway(fake_embeddings: DeterministicFakeEmbedding) -> EmbeddingGateway:
    return EmbeddingGateway(fake_embeddings, batch_size=4)


@pytest.fixture()
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture()
def fake_storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest.fixture()
def loader():  # noqa: ANN201
    return text_loader
