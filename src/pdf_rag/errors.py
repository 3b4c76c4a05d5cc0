"""Error taxonomy shared by ingestion, retrieval, conversation and trigger code."""

from __future__ import annotations


class RagError(Exception):
    """Base class for every error raised by :mod:`pdf_rag`."""


class ConfigError(RagError):
    """Invalid configuration, e.g. chunk overlap not smaller than chunk size."""


class LoadError(RagError):
    """A document source could not be read."""


class EmbeddingError(RagError):
    """The embedding provider failed."""


class StoreUnavailable(RagError):
    """The vector store could not be reached."""


class ModelInvocationError(RagError):
    """The language model failed or returned an empty response."""


class AuthError(RagError):
    """An identity token could not be obtained."""


class StorageError(RagError):
    """Object storage upload or download failed."""


class IngestionError(RagError):
    """An ingestion run failed.

    Parameters
    ----------
    stage:
        Name of the pipeline stage that was running (``"loading"`` …).
    cause:
        The underlying exception.
    """

    def __init__(self, stage: str, cause: BaseException) -> None:
        super().__init__(f"Ingestion failed during {stage}: {cause}")
        self.stage = stage
        self.cause = cause
