"""Ingestion pipeline — upload → load → chunk → embed → upsert.

The uploaded bytes are staged to a temporary file for the loaders and
the file is removed on every exit path, including validation errors and
provider failures.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from rag_qa.config import Settings, settings as default_settings
from rag_qa.errors import UnsupportedFileType, provider_call, truncate
from rag_qa.ingestion.chunker import chunk_documents
from rag_qa.ingestion.loader import is_supported, load_document
from rag_qa.logging_config import log_latency
from rag_qa.retrieval.base import VectorStoreBase
from rag_qa.retrieval.models import IndexedRecord

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedFile:
    """A file received from a client, alive for a single ingestion."""

    content: bytes
    mime_type: str | None
    filename: str


@dataclass(frozen=True)
class IngestionResult:
    chunk_count: int
    filename: str


@contextmanager
def staged_file(upload: UploadedFile, directory: str | None = None) -> Iterator[Path]:
    """Write *upload* to a temporary file and delete it when the block exits."""
    if directory:
        os.makedirs(directory, exist_ok=True)
    suffix = Path(upload.filename).suffix
    if "\x00" in suffix:
        suffix = ""
    fd, name = tempfile.mkstemp(suffix=suffix, prefix="upload-", dir=directory or None)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(upload.content)
        logger.debug("Staged %s at %s", upload.filename, path)
        yield path
    finally:
        path.unlink(missing_ok=True)


class IngestionPipeline:
    """Persist uploaded documents into the vector store.

    Parameters
    ----------
    store:
        Vector-store backend receiving the records.
    embeddings:
        Embedding provider for chunk texts.
    config:
        Chunking, namespace and staging settings.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embeddings: Embeddings,
        *,
        config: Settings | None = None,
    ) -> None:
        config = config or default_settings
        self._store = store
        self._embeddings = embeddings
        self.namespace = config.namespace
        self.chunk_size = config.chunk_size
        self.chunk_overlap = config.chunk_overlap
        self.upload_dir = config.upload_dir or None

    @log_latency("ingest")
    async def ingest(self, upload: UploadedFile) -> IngestionResult:
        logger.info("Starting ingestion of %r (%s)", truncate(upload.filename), upload.mime_type)
        if not is_supported(upload.mime_type):
            logger.error("Invalid file type: %s", upload.mime_type)
            raise UnsupportedFileType(upload.mime_type)

        with staged_file(upload, self.upload_dir) as path:
            documents = await asyncio.to_thread(load_document, path, upload.mime_type)
            for doc in documents:
                doc.metadata["source"] = upload.filename
                doc.metadata["filename"] = upload.filename
            chunks = chunk_documents(documents, self.chunk_size, self.chunk_overlap)
            logger.info("Document split into %d chunks", len(chunks))

            if not chunks:
                logger.warning("No extractable text in %r; nothing stored", upload.filename)
                return IngestionResult(chunk_count=0, filename=upload.filename)

            texts = [chunk.page_content for chunk in chunks]
            with provider_call("embedding", "embed_documents"):
                vectors = await self._embeddings.aembed_documents(texts)

            records = [
                IndexedRecord.from_chunk(chunk.page_content, vector, chunk.metadata)
                for chunk, vector in zip(chunks, vectors)
            ]
            with provider_call("store", "upsert"):
                await asyncio.to_thread(self._store.upsert, self.namespace, records)

        logger.info("Stored %d chunks from %r in namespace %s", len(records), upload.filename, self.namespace)
        return IngestionResult(chunk_count=len(records), filename=upload.filename)


def build_ingestion_pipeline(
    config: Settings | None = None,
    *,
    store: VectorStoreBase | None = None,
    embeddings: Embeddings | None = None,
) -> IngestionPipeline:
    """Wire an :class:`IngestionPipeline` from *config* (global settings by default)."""
    config = config or default_settings
    if embeddings is None:
        from rag_qa.ingestion.embedder import get_embedding_function

        embeddings = get_embedding_function(config)
    if store is None:
        from rag_qa.retrieval.chroma_store import ChromaVectorStore

        store = ChromaVectorStore(embeddings, config=config)
    return IngestionPipeline(store, embeddings, config=config)
