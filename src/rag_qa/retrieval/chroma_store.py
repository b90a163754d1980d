"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import chromadb
from langchain_community.vectorstores import Chroma

from rag_qa.config import Settings, settings as default_settings
from rag_qa.retrieval.base import VectorStoreBase
from rag_qa.retrieval.models import NAMESPACE_KEY, PAGE_CONTENT_KEY, IndexedRecord

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def _namespace_where(namespace: str) -> dict[str, Any]:
    """Chroma ``where`` clause restricting a read to one namespace."""
    return {NAMESPACE_KEY: {"$eq": namespace}}


def _distance_to_score(distance: float | None) -> float | None:
    if distance is None:
        return None
    return 1.0 / (1.0 + distance)


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Two read paths are exposed: :meth:`similarity_search` goes through
    the LangChain ``Chroma`` wrapper, :meth:`raw_query` queries the
    collection directly with a vector.

    Parameters
    ----------
    embeddings:
        Embedding function used by the LangChain search path.
    config:
        Connection settings; defaults to the global settings.
    client:
        Pre-built Chroma client (mostly for tests).
    """

    def __init__(
        self,
        embeddings: Embeddings,
        *,
        config: Settings | None = None,
        client: Any = None,
    ) -> None:
        config = config or default_settings
        config.validate_store()
        super().__init__(config.chroma_collection)
        self._embeddings = embeddings
        self._distance_metric = config.distance_metric
        if client is None:
            headers = {"x-chroma-token": config.chroma_api_key} if config.chroma_api_key else None
            client = chromadb.HttpClient(host=config.chroma_host, port=config.chroma_port, headers=headers)
        self._client = client
        self.create_or_open_index(config.chroma_collection)

    # -- VectorStoreBase overrides --------------------------------------------

    def create_or_open_index(self, name: str) -> None:
        logger.info("Opening Chroma collection %r", name)
        self.collection_name = name
        self._collection = self._client.get_or_create_collection(
            name=name,
            metadata={"hnsw:space": self._distance_metric},
        )
        self._langchain_store = Chroma(
            client=self._client,
            collection_name=name,
            embedding_function=self._embeddings,
        )

    def upsert(self, namespace: str, records: list[IndexedRecord]) -> int:
        if not records:
            return 0
        self._collection.upsert(
            ids=[r.id for r in records],
            embeddings=[r.embedding for r in records],
            documents=[r.text for r in records],
            metadatas=[{**r.metadata, NAMESPACE_KEY: namespace} for r in records],
        )
        logger.info("Upserted %d records into %r (namespace=%s)", len(records), self.collection_name, namespace)
        return len(records)

    def similarity_search(self, namespace: str, query: str, *, k: int = 3) -> list[dict[str, Any]]:
        where = _namespace_where(namespace)
        pairs = self._langchain_store.similarity_search_with_score(query, k=k, filter=where)
        return [
            {
                "id": getattr(doc, "id", None),
                "content": doc.page_content,
                "score": _distance_to_score(distance),
                "metadata": dict(doc.metadata or {}),
            }
            for doc, distance in pairs
        ]

    def raw_query(self, namespace: str, vector: list[float], *, k: int = 10) -> list[dict[str, Any]]:
        where = _namespace_where(namespace)
        results = self._collection.query(
            query_embeddings=[vector],
            n_results=k,
            where=where,
            include=["metadatas", "distances"],
        )

        hits: list[dict[str, Any]] = []
        ids = (results.get("ids") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        for doc_id, meta, dist in zip(ids, metas, distances):
            meta = meta or {}
            hits.append(
                {
                    "id": doc_id,
                    "content": meta.get(PAGE_CONTENT_KEY, ""),
                    "score": _distance_to_score(dist),
                    "metadata": meta,
                }
            )
        return hits

    def describe_stats(self) -> dict[str, Any]:
        return {
            "index": self.collection_name,
            "total_record_count": self._collection.count(),
            "distance_metric": self._distance_metric,
        }

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
