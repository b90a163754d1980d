"""Shared configuration loaded from environment / ``.env``."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from rag_qa.errors import ConfigurationError


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="LLM model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for the LLM API. Leave empty to use OpenAI cloud. "
            "Set to an OpenAI-compatible endpoint (e.g. vLLM) for local serving."
        ),
    )
    llm_temperature: float = 0.0

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = Field(default="rag_qa", description="Index / collection name")
    chroma_api_key: str = Field(default="", description="Optional token sent as x-chroma-token")
    distance_metric: str = "cosine"
    namespace: str = Field(default="rag-qa", description="Fixed namespace for all documents and queries")

    # Embedding
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"

    # Ingestion
    chunk_size: int = 1000
    chunk_overlap: int = 200
    upload_dir: str = Field(default="", description="Staging directory for uploads; empty = system temp dir")

    # Retrieval
    search_k: int = 3
    fallback_k: int = 10

    # Serving
    api_prefix: str = "/api"
    log_level: str = "INFO"
    log_file: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def require(self, *names: str) -> None:
        """Raise :class:`ConfigurationError` when any of *names* is empty."""
        missing = [name for name in names if not getattr(self, name)]
        if missing:
            env_vars = ", ".join(name.upper() for name in missing)
            raise ConfigurationError(
                f"Missing required configuration: {env_vars}",
                details="Set the variable(s) in the environment or in .env",
            )

    def validate_store(self) -> None:
        self.require("chroma_host", "chroma_collection", "namespace")

    def validate_generation(self) -> None:
        # A keyless vLLM endpoint is acceptable; OpenAI cloud is not.
        self.require("llm_model_name")
        if not self.llm_base_url:
            self.require("openai_api_key")


# Singleton — import `settings` wherever needed.
settings = Settings()
