"""Text chunking into fixed-size overlapping windows."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from langchain_text_splitters import TextSplitter

if TYPE_CHECKING:
    from langchain_core.documents import Document


class OverlappingTextSplitter(TextSplitter):
    """Split text into character windows of ``chunk_size`` sharing ``chunk_overlap``.

    Each window starts ``chunk_size - chunk_overlap`` characters after the
    previous one, so dropping the first ``chunk_overlap`` characters of
    every chunk but the first and concatenating gives back the input.
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200, **kwargs: Any) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be in [0, chunk_size={chunk_size})"
            )
        kwargs.setdefault("strip_whitespace", False)
        super().__init__(chunk_size=chunk_size, chunk_overlap=chunk_overlap, **kwargs)

    def split_text(self, text: str) -> list[str]:
        chunks: list[str] = []
        step = self._chunk_size - self._chunk_overlap
        start = 0
        while start < len(text):
            end = min(start + self._chunk_size, len(text))
            chunks.append(text[start:end])
            if end == len(text):
                break
            start += step
        return chunks


def chunk_documents(
    documents: list[Document],
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
) -> list[Document]:
    """Split *documents* into smaller chunks for embedding.

    Parameters
    ----------
    documents:
        Source documents produced by a loader.
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of characters shared by consecutive chunks of a document.

    Returns
    -------
    list[Document]
        Chunks in source order, carrying the source metadata plus
        ``start_index`` and a document-wide ``chunk_index``.
    """
    splitter = OverlappingTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        add_start_index=True,
    )
    chunks = splitter.split_documents(documents)
    for index, chunk in enumerate(chunks):
        chunk.metadata["chunk_index"] = index
    return chunks
