"""Service container — builds and tears down the process-lifetime clients.

Nothing here runs at import time: the FastAPI lifespan (or a test) calls
:meth:`ServiceContainer.from_settings` explicitly and :meth:`close` on
shutdown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from pdf_rag.config import Settings
from pdf_rag.conversation.history import SessionStore
from pdf_rag.conversation.service import ConversationService
from pdf_rag.ingestion.embedder import EmbeddingGateway
from pdf_rag.ingestion.loader import load_pdf_directory
from pdf_rag.ingestion.pipeline import IngestionPipeline, Loader
from pdf_rag.retrieval.retriever import SemanticRetriever

if TYPE_CHECKING:
    from pdf_rag.retrieval.base import VectorStoreBase
    from pdf_rag.storage import ObjectStorage

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Everything a request handler needs, wired once per process."""

    config: Settings
    embedder: EmbeddingGateway
    store: VectorStoreBase
    storage: ObjectStorage
    sessions: SessionStore
    conversation: ConversationService
    loader: Loader = load_pdf_directory

    @classmethod
    def from_settings(cls, config: Settings) -> ServiceContainer:
        from pdf_rag.conversation.llm import get_llm
        from pdf_rag.retrieval.chroma_store import ChromaVectorStore
        from pdf_rag.storage import GcsObjectStorage

        embedder = EmbeddingGateway(batch_size=config.embed_batch_size)
        store = ChromaVectorStore(
            config.vector_index_name,
            host=config.chroma_host,
            port=config.chroma_port,
            persist_dir=config.chroma_persist_dir,
            upsert_batch_size=config.upsert_batch_size,
        )
        storage = GcsObjectStorage(config.gcs_bucket_name, config.gcs_pdf_prefix)
        return cls.build(config, embedder=embedder, store=store, storage=storage, llm=get_llm(config))

    @classmethod
    def build(
        cls,
        config: Settings,
        *,
        embedder: EmbeddingGateway,
        store: VectorStoreBase,
        storage: ObjectStorage,
        llm,  # noqa: ANN001
        loader: Loader = load_pdf_directory,
    ) -> ServiceContainer:
        """Wire the services around already-constructed clients."""
        retriever = SemanticRetriever(
            store,
            embedder,
            default_k=config.retrieval_k,
            score_threshold=config.retrieval_score_threshold,
            index_name=config.vector_index_name,
        )
        sessions = SessionStore(
            config.system_prompt,
            max_sessions=config.history_max_sessions,
            max_turns=config.history_max_turns,
        )
        return cls(
            config=config,
            embedder=embedder,
            store=store,
            storage=storage,
            sessions=sessions,
            conversation=ConversationService(llm, retriever),
            loader=loader,
        )

    def pipeline_for(self, source_dir: str | Path) -> IngestionPipeline:
        return IngestionPipeline(
            source_dir,
            self.config.chunk_size,
            self.config.chunk_overlap,
            self.config.vector_index_name,
            embedder=self.embedder,
            store=self.store,
            loader=self.loader,
            allow_partial=self.config.ingest_allow_partial,
        )

    def close(self) -> None:
        logger.info("Closing service clients")
        self.sessions.clear()
        self.store.close()
        self.storage.close()
