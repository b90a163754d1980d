"""Embedding provider construction."""

from __future__ import annotations

from langchain_huggingface import HuggingFaceEmbeddings

from rag_qa.config import Settings, settings as default_settings


def get_embedding_function(config: Settings | None = None) -> HuggingFaceEmbeddings:
    """Return the configured sentence-transformer embedding function."""
    config = config or default_settings
    config.require("embedding_model")
    return HuggingFaceEmbeddings(
        model_name=config.embedding_model,
        encode_kwargs={"normalize_embeddings": True},
    )
