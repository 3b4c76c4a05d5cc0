"""Abstract base class for vector-store backends.

Adding a new backend only requires subclassing :class:`VectorStoreBase`
and implementing the abstract methods. The ingestion pipeline and the
conversation service only ever see this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pdf_rag.retrieval.models import RetrievalResult

if TYPE_CHECKING:
    from pdf_rag.ingestion.models import EmbeddingRecord


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Parameters
    ----------
    index_name:
        Default logical name of the collection / index used when a call
        does not name one.
    """

    def __init__(self, index_name: str) -> None:
        self.index_name = index_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def upsert(self, records: list[EmbeddingRecord], *, index_name: str | None = None) -> int:
        """Insert or replace *records*, keyed by ``record.record_id``.

        Returns the number of records written. Writing the same records
        twice leaves the stored count unchanged.
        """
        ...

    @abstractmethod
    def query(
        self,
        vector: list[float],
        *,
        k: int = 4,
        index_name: str | None = None,
    ) -> list[RetrievalResult]:
        """Return at most *k* results ordered by descending score.

        Ties keep insertion order. Raises
        :class:`~pdf_rag.errors.StoreUnavailable` when the backend cannot be
        reached.
        """
        ...

    @abstractmethod
    def count(self, *, document_id: str | None = None, index_name: str | None = None) -> int:
        """Number of stored records, optionally restricted to one document."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- optional overrides ---------------------------------------------------

    def delete(self, ids: list[str], *, index_name: str | None = None) -> None:
        """Delete records by their IDs.  Optional — raises by default."""
        raise NotImplementedError(f"{type(self).__name__} does not support delete")

    def close(self) -> None:
        """Release client resources. No-op by default."""
