"""Semantic retriever — namespace-scoped search with a raw-query fallback.

This module is the **primary public interface** for retrieval::

    retriever = build_retriever()
    results = await retriever.retrieve("What does chapter 2 cover?")
    for r in results:
        print(r.citation.short_ref(), r.content[:80])

The store's high-level search path can come back empty even when the
index holds matching vectors, so :meth:`SemanticRetriever.retrieve`
falls back to a direct vector query before giving up.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from rag_qa.config import Settings, settings as default_settings
from rag_qa.errors import provider_call, truncate
from rag_qa.retrieval.base import VectorStoreBase
from rag_qa.retrieval.models import Citation, RetrievalResult

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


class SemanticRetriever:
    """High-level retriever that wraps any :class:`VectorStoreBase`.

    Parameters
    ----------
    store:
        A concrete vector-store backend.
    embeddings:
        Embedding provider used to vectorise the question.
    namespace:
        Namespace every search is scoped to.
    search_k:
        Number of hits requested from the primary search path.
    fallback_k:
        Number of hits requested from the raw fallback query.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embeddings: Embeddings,
        *,
        namespace: str = default_settings.namespace,
        search_k: int = default_settings.search_k,
        fallback_k: int = default_settings.fallback_k,
    ) -> None:
        self._store = store
        self._embeddings = embeddings
        self.namespace = namespace
        self.search_k = search_k
        self.fallback_k = fallback_k

    @property
    def store(self) -> VectorStoreBase:
        return self._store

    # -- public API -----------------------------------------------------------

    async def retrieve(self, question: str) -> list[RetrievalResult]:
        """Return ranked chunks for *question*, trying search then the raw fallback.

        Returns an empty list only when both paths find nothing.
        """
        with provider_call("store", "describe_stats"):
            stats = await asyncio.to_thread(self._store.describe_stats)
        logger.info("Vector store stats: %s", stats)

        with provider_call("embedding", "embed_query"):
            vector = await self._embeddings.aembed_query(question)
        logger.info("Generated question embedding with length: %d", len(vector))

        with provider_call("store", "similarity_search"):
            hits = await asyncio.to_thread(
                self._store.similarity_search, self.namespace, question, k=self.search_k
            )
        logger.info(
            "Found %d relevant documents for %r (namespace=%s)",
            len(hits), truncate(question), self.namespace,
        )
        if hits:
            return self._to_results(hits, via="search")

        with provider_call("store", "raw_query"):
            hits = await asyncio.to_thread(
                self._store.raw_query, self.namespace, vector, k=self.fallback_k
            )
        logger.info("Direct vector query returned %d matches", len(hits))
        return self._to_results(hits, via="fallback")

    # -- internals ------------------------------------------------------------

    @staticmethod
    def _to_results(raw_hits: list[dict[str, Any]], *, via: str) -> list[RetrievalResult]:
        results: list[RetrievalResult] = []
        for hit in raw_hits:
            meta = hit.get("metadata") or {}
            citation = Citation(
                document_id=hit.get("id"),
                source=meta.get("filename") or meta.get("source", "unknown"),
                chunk_index=meta.get("chunk_index"),
                page=meta.get("page"),
                score=hit.get("score"),
                retrieved_via=via,
            )
            results.append(RetrievalResult(content=hit.get("content") or "", citation=citation))
        return results


def build_retriever(
    config: Settings | None = None,
    *,
    store: VectorStoreBase | None = None,
    embeddings: Embeddings | None = None,
) -> SemanticRetriever:
    """Wire a :class:`SemanticRetriever` from *config* (global settings by default)."""
    config = config or default_settings
    if embeddings is None:
        from rag_qa.ingestion.embedder import get_embedding_function

        embeddings = get_embedding_function(config)
    if store is None:
        from rag_qa.retrieval.chroma_store import ChromaVectorStore

        store = ChromaVectorStore(embeddings, config=config)
    return SemanticRetriever(
        store,
        embeddings,
        namespace=config.namespace,
        search_k=config.search_k,
        fallback_k=config.fallback_k,
    )
