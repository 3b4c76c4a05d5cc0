"""FastAPI application exposing chat, ingestion and upload endpoints."""

from __future__ import annotations

import asyncio
import logging
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from pdf_rag.config import settings
from pdf_rag.errors import ConfigError, IngestionError, LoadError, ModelInvocationError, StorageError
from pdf_rag.serving.container import ServiceContainer

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"


# ── Request / Response schemas ────────────────────────────────────────
class MessageRequest(BaseModel):
    """Incoming chat message."""

    text: str | None = None
    rag: bool = False
    session_id: str = DEFAULT_SESSION_ID


class MessageResponse(BaseModel):
    """Assistant answer."""

    text: str
    session_id: str


class EmbedRequest(BaseModel):
    """Ingestion webhook payload, sent by the storage trigger."""

    model_config = ConfigDict(populate_by_name=True)

    file_name: str | None = Field(default=None, alias="fileName")


class EmbedResponse(BaseModel):
    """Summary of one ingestion run."""

    message: str
    status: str
    outcome: str
    source_path: str
    documents_loaded: int = 0
    chunks_produced: int = 0
    records_written: int = 0
    failed_documents: list[str] = []


class UploadResponse(BaseModel):
    message: str
    filename: str


def _error(status_code: int, **content: object) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content)


def _ingestion_failure(exc: IngestionError) -> JSONResponse:
    logger.error("Ingestion Error: %s", exc)
    return _error(
        500,
        error="Ingestion pipeline execution failed.",
        stage=exc.stage,
        details=str(exc.cause),
    )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


# ── Application factory ───────────────────────────────────────────────
def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Build the API.

    When *container* is given it is used as-is and left open on shutdown;
    otherwise one is built from the settings at startup and closed again
    at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = getattr(app.state, "container", None) is None
        if owned:
            logging.basicConfig(
                level=settings.log_level,
                format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            )
            app.state.container = ServiceContainer.from_settings(settings)
        logger.info("PDF RAG API ready (index=%s)", app.state.container.config.vector_index_name)
        yield
        if owned:
            app.state.container.close()
            app.state.container = None

    app = FastAPI(
        title="PDF RAG API",
        version="0.1.0",
        description="Retrieval-augmented chat over ingested PDF documents.",
        lifespan=lifespan,
    )
    app.state.container = container

    # ── Routes ────────────────────────────────────────────────────────
    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        """Liveness probe."""
        return "Welcome to the PDF RAG Chatbot API!"

    @app.get("/health")
    async def health(container: ServiceContainer = Depends(get_container)) -> dict[str, object]:
        """Readiness probe including the vector store."""
        store_ok = await asyncio.to_thread(container.store.health_check)
        return {"status": "ok" if store_ok else "degraded", "vector_store": store_ok}

    @app.post("/messages", response_model=MessageResponse)
    async def messages(
        request: MessageRequest,
        container: ServiceContainer = Depends(get_container),
    ) -> MessageResponse | JSONResponse:
        """Answer a chat message, optionally with retrieved context."""
        if not request.text or not request.text.strip():
            return _error(400, error="Message is required")

        history = container.sessions.get(request.session_id)
        try:
            text = await container.conversation.handle(history, request.text, use_retrieval=request.rag)
        except ModelInvocationError:
            return _error(500, error="Model invocation failed.")
        return MessageResponse(text=text, session_id=request.session_id)

    @app.post("/embed", response_model=EmbedResponse)
    async def embed(
        request: EmbedRequest,
        container: ServiceContainer = Depends(get_container),
    ) -> EmbedResponse | JSONResponse:
        """Download the named PDF from storage and ingest it."""
        if not request.file_name:
            return _error(400, error="fileName is required")

        config = container.config
        download_root = Path(config.local_download_dir)
        download_root.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(dir=download_root, prefix="embed_") as tmp:
            try:
                paths = await asyncio.to_thread(container.storage.download_matching, request.file_name, Path(tmp))
            except StorageError as exc:
                return _ingestion_failure(IngestionError("loading", exc))

            if not paths and config.missing_object_is_error:
                missing = LoadError(f"No PDF named {request.file_name!r} under {container.storage.source_uri}")
                return _ingestion_failure(IngestionError("loading", missing))

            try:
                report = await container.pipeline_for(tmp).run()
            except ConfigError as exc:
                return _ingestion_failure(IngestionError("config", exc))
            except IngestionError as exc:
                return _ingestion_failure(exc)

        return EmbedResponse(
            message=report.summary(),
            status=report.status,
            outcome="downloaded" if paths else "no_matching_object",
            source_path=container.storage.source_uri,
            documents_loaded=report.documents_loaded,
            chunks_produced=report.chunks_produced,
            records_written=report.records_written,
            failed_documents=[o.document_id for o in report.failed_documents],
        )

    @app.post("/upload", response_model=UploadResponse)
    async def upload(
        file: UploadFile | None = File(default=None),
        container: ServiceContainer = Depends(get_container),
    ) -> UploadResponse | JSONResponse:
        """Store an uploaded PDF in the configured bucket/prefix."""
        if file is None or not file.filename:
            return _error(400, error="No file uploaded.")

        limit = container.config.max_upload_bytes
        data = await file.read(limit + 1)
        if len(data) > limit:
            return _error(413, error=f"File exceeds the {limit} byte limit.")

        try:
            name = await asyncio.to_thread(container.storage.upload, file.filename, data, file.content_type)
        except StorageError as exc:
            logger.error("Upload failed: %s", exc)
            return _error(500, error=f"Could not upload the file: {exc}")
        return UploadResponse(message="File uploaded successfully", filename=name)

    return app


# Clients are only built when the server starts (see ``lifespan``).
app = create_app()
