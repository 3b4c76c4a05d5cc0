"""Shared configuration loaded from environment / ``.env`` file."""

from __future__ import annotations

from urllib.parse import urlsplit

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions about the documents "
    "in the knowledge base. When context is provided, ground your answer in "
    "it and say so when the context does not contain the answer."
)


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Ingestion
    pdf_directory: str = Field(default="pdf_documents/", description="Local directory scanned for PDFs")
    chunk_size: int = Field(default=1000, description="Maximum characters per chunk")
    chunk_overlap: int = Field(default=200, description="Characters shared by consecutive chunks")
    ingest_allow_partial: bool = Field(
        default=False,
        description="Record per-document failures instead of aborting the whole run",
    )

    # Embedding
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embed_batch_size: int = 64

    # Vector store
    vector_index_name: str = Field(default="default", description="Chroma collection used as the vector index")
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_persist_dir: str = Field(
        default="",
        description="When set, use an embedded persistent Chroma client instead of the HTTP client",
    )
    upsert_batch_size: int = 5000
    retrieval_k: int = 4
    retrieval_score_threshold: float = 0.0

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="LLM model identifier")
    llm_base_url: str = Field(
        default="",
        description="Base URL for an OpenAI-compatible endpoint. Leave empty to use OpenAI cloud.",
    )
    llm_temperature: float = 0.5
    llm_max_tokens: int = 2048
    system_prompt: str = DEFAULT_SYSTEM_PROMPT

    # Conversation history
    history_max_sessions: int = Field(default=1000, description="Sessions kept before LRU eviction")
    history_max_turns: int | None = Field(
        default=None,
        description="Human/assistant turns kept per session (positive, even); None keeps everything",
    )

    # Serving
    server_host: str = "0.0.0.0"
    server_port: int = 8080
    max_upload_bytes: int = 5 * 1024 * 1024

    # Cloud Storage
    gcs_bucket_name: str = ""
    gcs_pdf_prefix: str = "pdfs/"
    local_download_dir: str = "temp_downloads"
    missing_object_is_error: bool = Field(
        default=False,
        description="Fail /embed when no stored object matches the requested file name",
    )

    # Event trigger
    ingestion_service_url: str = Field(default="", description="Full URL of the /embed webhook")
    ingestion_audience: str = Field(
        default="",
        description="ID-token audience; defaults to the origin of ingestion_service_url",
    )
    webhook_timeout: float = 30.0

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def resolved_audience(self) -> str:
        """Audience for the ingestion service's identity token."""
        if self.ingestion_audience:
            return self.ingestion_audience
        parts = urlsplit(self.ingestion_service_url)
        if not parts.scheme:
            return self.ingestion_service_url
        return f"{parts.scheme}://{parts.netloc}"


# Singleton — import `settings` wherever needed.
settings = Settings()
