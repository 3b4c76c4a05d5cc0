"""Object storage — Cloud Storage download/upload behind a small interface."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Any

from pdf_rag.errors import StorageError

logger = logging.getLogger(__name__)


class ObjectStorage(ABC):
    """Bucket/prefix-scoped object store holding the source PDFs."""

    def __init__(self, bucket_name: str, prefix: str = "") -> None:
        self.bucket_name = bucket_name
        self.prefix = prefix

    @property
    def source_uri(self) -> str:
        return f"gs://{self.bucket_name}/{self.prefix}"

    def object_name(self, file_name: str) -> str:
        """Full object name for *file_name*; names already under the prefix are kept."""
        if self.prefix and file_name.startswith(self.prefix):
            return file_name
        return f"{self.prefix}{file_name}"

    @abstractmethod
    def download_matching(self, file_name: str, destination: Path) -> list[Path]:
        """Download PDFs under the prefix whose name matches *file_name*.

        Returns the local paths written; an empty list when nothing matched.
        """
        ...

    @abstractmethod
    def upload(self, file_name: str, data: bytes, content_type: str | None = None) -> str:
        """Store *data* under the prefix and return the object name."""
        ...

    def close(self) -> None:
        """Release client resources. No-op by default."""


class GcsObjectStorage(ObjectStorage):
    """Google Cloud Storage implementation.

    Parameters
    ----------
    bucket_name:
        Name of the bucket holding the PDFs.
    prefix:
        Folder-like key prefix, e.g. ``"pdfs/"``.
    client:
        A ``google.cloud.storage.Client``; created with Application Default
        Credentials on first use when *None*.
    """

    def __init__(self, bucket_name: str, prefix: str = "pdfs/", *, client: Any | None = None) -> None:
        super().__init__(bucket_name, prefix)
        self._client = client

    def _bucket(self) -> Any:
        if self._client is None:
            from google.cloud import storage

            self._client = storage.Client()
        return self._client.bucket(self.bucket_name)

    def download_matching(self, file_name: str, destination: Path) -> list[Path]:
        wanted = self.object_name(file_name)
        logger.info("Starting download from %s (object %s)", self.source_uri, wanted)
        destination.mkdir(parents=True, exist_ok=True)
        try:
            blobs = list(self._bucket().list_blobs(prefix=self.prefix))
            matches = [b for b in blobs if b.name.lower().endswith(".pdf") and b.name == wanted]
            paths: list[Path] = []
            for blob in matches:
                target = destination / PurePosixPath(blob.name).name
                logger.info("Downloading %s to %s", blob.name, target)
                blob.download_to_filename(str(target))
                paths.append(target)
        except Exception as exc:
            raise StorageError(f"Download from {self.source_uri} failed: {exc}") from exc
        if not blobs:
            logger.info("No files found in the GCS path.")
        logger.info("Downloaded %d PDF files.", len(paths))
        return paths

    def upload(self, file_name: str, data: bytes, content_type: str | None = None) -> str:
        name = self.object_name(PurePosixPath(file_name).name)
        logger.info("Uploading file to %s", name)
        try:
            blob = self._bucket().blob(name)
            blob.upload_from_string(data, content_type=content_type or "application/pdf")
        except Exception as exc:
            raise StorageError(f"Could not upload {name}: {exc}") from exc
        return name

    def close(self) -> None:
        if self._client is not None and hasattr(self._client, "close"):
            self._client.close()
        self._client = None
