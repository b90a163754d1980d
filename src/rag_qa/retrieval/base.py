"""Abstract base class for vector-store backends.

Adding a new backend (Pinecone, Weaviate, Qdrant …) only requires
subclassing :class:`VectorStoreBase` and implementing the abstract
methods.  The pipelines are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from rag_qa.retrieval.models import IndexedRecord


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Every read and write is scoped to a *namespace*, a logical partition
    of the index.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def create_or_open_index(self, name: str) -> None:
        """Make *name* the active index, creating it when absent."""
        ...

    @abstractmethod
    def upsert(self, namespace: str, records: list[IndexedRecord]) -> int:
        """Insert or overwrite *records* in *namespace*; return how many were written."""
        ...

    @abstractmethod
    def similarity_search(self, namespace: str, query: str, *, k: int = 3) -> list[dict[str, Any]]:
        """Embed *query* and return the top-*k* hits through the high-level search path.

        Each result dict **must** contain at least:

        * ``"id"`` – chunk identifier (may be ``None``)
        * ``"content"`` – the textual content
        * ``"score"`` – similarity score (``None`` when unknown)
        * ``"metadata"`` – associated metadata dict
        """
        ...

    @abstractmethod
    def raw_query(self, namespace: str, vector: list[float], *, k: int = 10) -> list[dict[str, Any]]:
        """Query the index directly with a pre-computed *vector*.

        Returns the same hit shape as :meth:`similarity_search`, with
        ``"content"`` read from the ``page_content`` metadata field.
        """
        ...

    @abstractmethod
    def describe_stats(self) -> dict[str, Any]:
        """Return backend statistics (record counts, index name …)."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...
