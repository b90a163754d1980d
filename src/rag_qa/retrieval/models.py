"""Domain models for indexed records, retrieval results and citations."""

from __future__ import annotations

import hashlib
from typing import Any

from pydantic import BaseModel, Field

# Metadata key under which every record keeps its own chunk text.
PAGE_CONTENT_KEY = "page_content"
NAMESPACE_KEY = "namespace"


class IndexedRecord(BaseModel):
    """The unit persisted in the vector store.

    ``metadata`` always carries the chunk text under ``page_content`` so
    that context can be rebuilt from a raw vector query alone.
    """

    id: str
    embedding: list[float]
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_chunk(
        cls,
        text: str,
        embedding: list[float],
        metadata: dict[str, Any],
    ) -> IndexedRecord:
        """Build a record with a deterministic id, so re-ingesting overwrites."""
        key = "\x1f".join(
            [str(metadata.get("filename", "")), str(metadata.get("chunk_index", "")), text]
        )
        record_id = hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]
        meta = {**_flatten(metadata), PAGE_CONTENT_KEY: text}
        return cls(id=record_id, embedding=embedding, text=text, metadata=meta)


class Citation(BaseModel):
    """Provenance record linking a retrieved chunk back to its source document.

    Attributes
    ----------
    document_id:
        The vector-store ID of the chunk (``None`` when unknown).
    source:
        Original filename of the uploaded document.
    chunk_index:
        Ordinal position of the chunk within the source document.
    page:
        Page number (PDF sources only).
    score:
        Similarity score returned by the vector store, when available.
    retrieved_via:
        ``"search"`` for the primary path, ``"fallback"`` for the raw query.
    """

    document_id: str | None = None
    source: str = "unknown"
    chunk_index: int | None = None
    page: int | None = None
    score: float | None = None
    retrieved_via: str = "search"

    def short_ref(self) -> str:
        """Return a compact ``[source§chunk]`` reference string."""
        chunk = self.chunk_index if self.chunk_index is not None else "?"
        return f"[{self.source}§{chunk}]"


class RetrievalResult(BaseModel):
    """A single retrieved passage together with its citation."""

    content: str
    citation: Citation

    def __str__(self) -> str:  # noqa: D105
        return f"{self.citation.short_ref()} {self.content[:120]}…"


def _flatten(metadata: dict[str, Any]) -> dict[str, Any]:
    # Chroma metadata values must be flat str/int/float/bool
    return {
        key: value
        for key, value in metadata.items()
        if isinstance(value, (str, int, float, bool))
    }
