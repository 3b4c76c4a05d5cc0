"""Fixed-stride text chunking with overlap."""

from __future__ import annotations

from collections.abc import Iterable

from pdf_rag.errors import ConfigError
from pdf_rag.ingestion.models import Chunk, Document


def validate_chunking(chunk_size: int, chunk_overlap: int) -> None:
    """Raise :class:`ConfigError` unless ``0 <= chunk_overlap < chunk_size``."""
    for name, value in (("chunk_size", chunk_size), ("chunk_overlap", chunk_overlap)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{name} must be an integer, got {value!r}")
    if chunk_size <= 0:
        raise ConfigError(f"chunk_size ({chunk_size}) must be positive")
    if chunk_overlap < 0:
        raise ConfigError(f"chunk_overlap ({chunk_overlap}) must not be negative")
    if chunk_overlap >= chunk_size:
        raise ConfigError(f"chunk_overlap ({chunk_overlap}) must be < chunk_size ({chunk_size})")


def split(document: Document, chunk_size: int = 1000, chunk_overlap: int = 200) -> list[Chunk]:
    """Split *document* into windows of at most *chunk_size* characters.

    A window starts at every multiple of ``chunk_size - chunk_overlap``
    below the text length, so the last window may be shorter than the
    others. Text that fits in a single window yields exactly one chunk
    and empty text yields none.

    Parameters
    ----------
    document:
        The loaded document.
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of characters shared by consecutive chunks.

    Returns
    -------
    list[Chunk]
        Chunks with contiguous ordinals starting at 0.
    """
    validate_chunking(chunk_size, chunk_overlap)
    text = document.text
    if not text:
        return []

    if len(text) <= chunk_size:
        starts: Iterable[int] = [0]
    else:
        starts = range(0, len(text), chunk_size - chunk_overlap)

    chunks: list[Chunk] = []
    prev_end = 0
    for index, start in enumerate(starts):
        end = min(start + chunk_size, len(text))
        chunks.append(
            Chunk(
                document_id=document.document_id,
                index=index,
                text=text[start:end],
                start=start,
                end=end,
                overlap=max(0, min(prev_end, end) - start),
                metadata={"source": document.metadata.get("source", document.document_id)},
            )
        )
        prev_end = end
    return chunks


def chunk_documents(
    documents: list[Document],
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
) -> list[Chunk]:
    """Chunk every document, keeping document order and per-document ordinals."""
    validate_chunking(chunk_size, chunk_overlap)
    chunks: list[Chunk] = []
    for document in documents:
        chunks.extend(split(document, chunk_size, chunk_overlap))
    return chunks


def reconstruct(chunks: list[Chunk]) -> str:
    """Rebuild a document's text from its chunks by dropping each overlap."""
    return "".join(chunk.text[chunk.overlap :] for chunk in chunks)
