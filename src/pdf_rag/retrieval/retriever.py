"""Semantic retriever — embeds a question and queries the vector store.

Usage::

    retriever = SemanticRetriever(store, gateway, default_k=4)
    results = await retriever.search("What does the policy cover?")
    for r in results:
        print(r.citation.short_ref(), r.score, r.content[:80])
"""

from __future__ import annotations

import asyncio
import logging

from pdf_rag.ingestion.embedder import EmbeddingGateway
from pdf_rag.retrieval.base import VectorStoreBase
from pdf_rag.retrieval.models import RetrievalResult

logger = logging.getLogger(__name__)


class SemanticRetriever:
    """High-level retriever over any :class:`VectorStoreBase`.

    Parameters
    ----------
    store:
        A concrete vector-store backend.
    embedder:
        Gateway used to embed the query text.
    default_k:
        Default number of results returned by :meth:`search`.
    score_threshold:
        Minimum similarity score; results below this are discarded.
    index_name:
        Index queried when :meth:`search` does not name one.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder: EmbeddingGateway,
        *,
        default_k: int = 4,
        score_threshold: float = 0.0,
        index_name: str | None = None,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self.default_k = default_k
        self.score_threshold = score_threshold
        self.index_name = index_name

    async def search(
        self,
        query: str,
        *,
        k: int | None = None,
        index_name: str | None = None,
    ) -> list[RetrievalResult]:
        """Embed *query* and return ranked results above the score threshold."""
        embedding = await self._embedder.embed_query(query)
        return await self.search_by_embedding(embedding, k=k, index_name=index_name)

    async def search_by_embedding(
        self,
        embedding: list[float],
        *,
        k: int | None = None,
        index_name: str | None = None,
    ) -> list[RetrievalResult]:
        """Same as :meth:`search` but accepts a pre-computed embedding."""
        k = k or self.default_k
        hits = await asyncio.to_thread(
            self._store.query,
            embedding,
            k=k,
            index_name=index_name or self.index_name,
        )
        results = [h for h in hits if h.score >= self.score_threshold]
        logger.debug("retrieved %d/%d results above %.2f", len(results), len(hits), self.score_threshold)
        return results
