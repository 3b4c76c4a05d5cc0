"""Ingestion pipeline — load → split → embed → upsert.

One :meth:`IngestionPipeline.run` walks the stages::

    LOADING → SPLITTING → EMBEDDING_AND_UPSERTING → DONE
        └────────────┴───────────────┴──────────→ FAILED

By default any failure aborts the whole run with an :class:`IngestionError`
naming the stage. With ``allow_partial=True`` documents are embedded and
upserted one at a time and each gets its own :class:`DocumentOutcome`, so a
bad document no longer throws away the work done for the others.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from pdf_rag.config import settings
from pdf_rag.errors import IngestionError
from pdf_rag.ingestion.chunker import chunk_documents, validate_chunking
from pdf_rag.ingestion.embedder import EmbeddingGateway
from pdf_rag.ingestion.loader import load_pdf_directory
from pdf_rag.ingestion.models import Chunk, Document, EmbeddingRecord
from pdf_rag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

Loader = Callable[[Path], list[Document]]


class IngestionStage(str, enum.Enum):
    LOADING = "loading"
    SPLITTING = "splitting"
    EMBEDDING_AND_UPSERTING = "embedding_and_upserting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class DocumentOutcome:
    """Result of ingesting a single document."""

    document_id: str
    succeeded: bool
    chunks: int = 0
    records_written: int = 0
    error: str | None = None


@dataclass
class IngestionReport:
    """Summary of one pipeline run."""

    stage: IngestionStage = IngestionStage.LOADING
    status: str = "running"
    documents_loaded: int = 0
    chunks_produced: int = 0
    records_written: int = 0
    outcomes: list[DocumentOutcome] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def failed_documents(self) -> list[DocumentOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    def summary(self) -> str:
        if self.status == "nothing_to_do":
            return "No documents found. Nothing to do."
        msg = (
            f"Imported {self.records_written} records from {self.chunks_produced} chunks "
            f"of {self.documents_loaded} documents"
        )
        if self.failed_documents:
            msg += f" ({len(self.failed_documents)} documents failed)"
        return msg


class IngestionPipeline:
    """Encapsulates loading, chunking, embedding and upserting a PDF directory.

    Parameters
    ----------
    source_dir:
        Local directory containing the PDF documents.
    chunk_size / chunk_overlap:
        Chunking parameters; validated before any I/O.
    index_name:
        Vector index the records are written to.
    embedder:
        Embedding gateway.
    store:
        Vector-store adapter.
    loader:
        Callable turning a directory into documents. Defaults to
        :func:`~pdf_rag.ingestion.loader.load_pdf_directory`.
    allow_partial:
        Track per-document outcomes instead of aborting on the first failure.
    """

    def __init__(
        self,
        source_dir: str | Path = settings.pdf_directory,
        chunk_size: int = settings.chunk_size,
        chunk_overlap: int = settings.chunk_overlap,
        index_name: str = settings.vector_index_name,
        *,
        embedder: EmbeddingGateway,
        store: VectorStoreBase,
        loader: Loader = load_pdf_directory,
        allow_partial: bool = settings.ingest_allow_partial,
    ) -> None:
        validate_chunking(chunk_size, chunk_overlap)
        self.source_dir = Path(source_dir)
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.index_name = index_name
        self.allow_partial = allow_partial
        self._embedder = embedder
        self._store = store
        self._loader = loader

    async def run(self) -> IngestionReport:
        """Execute the full pipeline and return its report.

        Raises
        ------
        IngestionError
            When a stage fails (or, in partial mode, when every document fails).
        """
        report = IngestionReport()
        t0 = time.monotonic()
        try:
            docs = await self._load(report)
            if not docs:
                logger.info("No documents found in '%s'. Nothing to do.", self.source_dir)
                report.stage = IngestionStage.DONE
                report.status = "nothing_to_do"
                return report

            chunks = self._split(report, docs)

            report.stage = IngestionStage.EMBEDDING_AND_UPSERTING
            if self.allow_partial:
                await self._embed_and_upsert_each(report, docs, chunks)
            else:
                report.records_written = await self._embed_and_upsert(chunks)
                report.outcomes = [
                    DocumentOutcome(d.document_id, True, chunks=n, records_written=n)
                    for d, n in _chunk_counts(docs, chunks)
                ]
                report.status = "succeeded"
        except IngestionError:
            report.stage = IngestionStage.FAILED
            raise
        except Exception as exc:
            failed_stage = report.stage.value
            report.stage = IngestionStage.FAILED
            logger.error("Ingestion failed during %s: %s", failed_stage, exc)
            raise IngestionError(failed_stage, exc) from exc
        finally:
            report.elapsed_seconds = round(time.monotonic() - t0, 2)

        report.stage = IngestionStage.DONE
        logger.info("%s in %.1fs", report.summary(), report.elapsed_seconds)
        return report

    # -- stages ---------------------------------------------------------------

    async def _load(self, report: IngestionReport) -> list[Document]:
        report.stage = IngestionStage.LOADING
        logger.info("Loading documents from '%s'", self.source_dir)
        docs = await asyncio.to_thread(self._loader, self.source_dir)
        report.documents_loaded = len(docs)
        return docs

    def _split(self, report: IngestionReport, docs: list[Document]) -> list[Chunk]:
        report.stage = IngestionStage.SPLITTING
        chunks = chunk_documents(docs, self.chunk_size, self.chunk_overlap)
        report.chunks_produced = len(chunks)
        logger.info(
            "Split %d documents into %d chunks (chunk_size=%d, overlap=%d)",
            len(docs),
            len(chunks),
            self.chunk_size,
            self.chunk_overlap,
        )
        return chunks

    async def _embed_and_upsert(self, chunks: list[Chunk]) -> int:
        if not chunks:
            return 0
        vectors = await self._embedder.embed_documents([c.text for c in chunks])
        records = [EmbeddingRecord.from_chunk(c, v) for c, v in zip(chunks, vectors)]
        return await asyncio.to_thread(self._store.upsert, records, index_name=self.index_name)

    async def _embed_and_upsert_each(
        self,
        report: IngestionReport,
        docs: list[Document],
        chunks: list[Chunk],
    ) -> None:
        by_doc: dict[str, list[Chunk]] = {d.document_id: [] for d in docs}
        for chunk in chunks:
            by_doc[chunk.document_id].append(chunk)

        for doc_id, doc_chunks in by_doc.items():
            try:
                written = await self._embed_and_upsert(doc_chunks)
            except Exception as exc:
                logger.error("Document %s failed: %s", doc_id, exc)
                report.outcomes.append(DocumentOutcome(doc_id, False, chunks=len(doc_chunks), error=str(exc)))
                continue
            report.records_written += written
            report.outcomes.append(DocumentOutcome(doc_id, True, chunks=len(doc_chunks), records_written=written))

        failed = report.failed_documents
        if failed and len(failed) == len(report.outcomes):
            raise IngestionError(
                IngestionStage.EMBEDDING_AND_UPSERTING.value,
                RuntimeError(f"All {len(failed)} documents failed; first error: {failed[0].error}"),
            )
        report.status = "partial" if failed else "succeeded"


def _chunk_counts(docs: list[Document], chunks: list[Chunk]) -> list[tuple[Document, int]]:
    counts: dict[str, int] = {}
    for chunk in chunks:
        counts[chunk.document_id] = counts.get(chunk.document_id, 0) + 1
    return [(d, counts.get(d.document_id, 0)) for d in docs]
