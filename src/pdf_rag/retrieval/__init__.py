"""
Retrieval — vector storage, search, and result models.

This module wraps the vector store behind a clean interface so that the
ingestion pipeline and the conversation layer never need to know which
DB is backing retrieval.

Public surface
--------------
- :class:`SemanticRetriever` — embeds a question and returns ranked passages.
- :class:`VectorStoreBase` — abstract backend.
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`Citation`, :class:`RetrievalResult` — data models.
"""

from pdf_rag.retrieval.base import VectorStoreBase
from pdf_rag.retrieval.models import Citation, RetrievalResult
from pdf_rag.retrieval.retriever import SemanticRetriever

__all__ = [
    "Citation",
    "ChromaVectorStore",
    "RetrievalResult",
    "SemanticRetriever",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from pdf_rag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
