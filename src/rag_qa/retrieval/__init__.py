"""
Retrieval — namespace-scoped vector search with a raw-query fallback.

This module wraps the vector store behind a clean interface so that
the pipelines never need to know which DB is backing retrieval.

Public surface
--------------
- :class:`SemanticRetriever` — ``retrieve(question)`` with automatic fallback.
- :class:`VectorStoreBase` — abstract backend (subclass for Pinecone, etc.).
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`IndexedRecord`, :class:`Citation`, :class:`RetrievalResult` — data
  models.
"""

from rag_qa.retrieval.base import VectorStoreBase
from rag_qa.retrieval.models import Citation, IndexedRecord, RetrievalResult
from rag_qa.retrieval.retriever import SemanticRetriever, build_retriever

__all__ = [
    "Citation",
    "ChromaVectorStore",
    "IndexedRecord",
    "RetrievalResult",
    "SemanticRetriever",
    "VectorStoreBase",
    "build_retriever",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from rag_qa.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
