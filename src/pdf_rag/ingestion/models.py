"""Domain models flowing through the ingestion pipeline."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def record_id(document_id: str, chunk_index: int) -> str:
    """Stable vector-store key for chunk *chunk_index* of *document_id*.

    Derived from the document name, never random, so re-ingesting a
    document overwrites its previous records.
    """
    digest = hashlib.sha256(document_id.encode("utf-8")).hexdigest()[:16]
    return f"{digest}_{chunk_index}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Document(BaseModel):
    """A loaded source document.

    Attributes
    ----------
    document_id:
        Stable identifier, the file name relative to the source directory.
    text:
        Full extracted text.
    metadata:
        ``source`` (origin path or URI), ``ingested_at`` and loader extras
        such as ``page_count``.
    """

    model_config = ConfigDict(frozen=True)

    document_id: str
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class Chunk(BaseModel):
    """A bounded text window of a :class:`Document`.

    ``start``/``end`` are character offsets into the parent text and
    ``overlap`` is the number of leading characters shared with the
    previous chunk of the same document.
    """

    model_config = ConfigDict(frozen=True)

    document_id: str
    index: int
    text: str
    start: int
    end: int
    overlap: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def chunk_id(self) -> str:
        return record_id(self.document_id, self.index)


class EmbeddingRecord(BaseModel):
    """A chunk paired with its embedding, ready to be upserted."""

    record_id: str
    document_id: str
    chunk_index: int
    vector: list[float]
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_chunk(cls, chunk: Chunk, vector: list[float]) -> EmbeddingRecord:
        return cls(
            record_id=chunk.chunk_id,
            document_id=chunk.document_id,
            chunk_index=chunk.index,
            vector=vector,
            text=chunk.text,
            metadata={
                **chunk.metadata,
                "document_id": chunk.document_id,
                "chunk_index": chunk.index,
                "start": chunk.start,
                "end": chunk.end,
            },
        )
