"""Embedding gateway — wraps a LangChain ``Embeddings`` provider."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from pdf_rag.config import settings
from pdf_rag.errors import EmbeddingError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_embedding_function(model_name: str = settings.embedding_model) -> Embeddings:
    """Return the configured sentence-transformer embedding function."""
    from langchain_huggingface import HuggingFaceEmbeddings

    return HuggingFaceEmbeddings(
        model_name=model_name,
        encode_kwargs={"normalize_embeddings": True},
    )


class EmbeddingGateway:
    """Converts text into fixed-dimension vectors.

    Parameters
    ----------
    embeddings:
        Any LangChain ``Embeddings`` implementation. When *None* the
        HuggingFace model named in the settings is loaded.
    batch_size:
        Number of texts sent to the provider per call.
    """

    def __init__(self, embeddings: Embeddings | None = None, *, batch_size: int = settings.embed_batch_size) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._embeddings = embeddings if embeddings is not None else get_embedding_function()
        self.batch_size = batch_size

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* in batches; raises :class:`EmbeddingError` on failure."""
        if not texts:
            return []
        vectors: list[list[float]] = []
        t0 = time.monotonic()
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            try:
                vectors.extend(await self._embeddings.aembed_documents(batch))
            except Exception as exc:
                raise EmbeddingError(f"Embedding provider failed on batch at {start}: {exc}") from exc
            logger.debug("embedded %d / %d", len(vectors), len(texts))
        if len(vectors) != len(texts):
            raise EmbeddingError(f"Provider returned {len(vectors)} vectors for {len(texts)} texts")
        logger.info("Embedded %d texts in %.1fs", len(texts), time.monotonic() - t0)
        return vectors

    async def embed_query(self, text: str) -> list[float]:
        try:
            return await self._embeddings.aembed_query(text)
        except Exception as exc:
            raise EmbeddingError(f"Embedding provider failed on query: {exc}") from exc
