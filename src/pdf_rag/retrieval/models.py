"""Domain models for retrieval results and citation tracking."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class Citation(BaseModel):
    """Provenance record linking a retrieved chunk back to its source document.

    Attributes
    ----------
    record_id:
        The vector-store key of the chunk.
    document_id:
        Identifier of the parent document.
    source:
        Human-readable source locator — file path, URI, etc.
    chunk_index:
        Ordinal position of the chunk within the source document.
    metadata:
        Remaining metadata stored alongside the chunk.
    """

    record_id: str | None = None
    document_id: str | None = None
    source: str = "unknown"
    chunk_index: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def short_ref(self) -> str:
        """Return a compact ``[source§chunk]`` reference string."""
        chunk = self.chunk_index if self.chunk_index is not None else "?"
        return f"[{self.source}§{chunk}]"


class RetrievalResult(BaseModel):
    """A single retrieved passage together with its relevance score."""

    content: str
    score: float
    citation: Citation = Field(default_factory=Citation)

    def __str__(self) -> str:  # noqa: D105
        return f"{self.citation.short_ref()} ({self.score:.3f}) {self.content[:120]}…"
