"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** — set ``LLM_BASE_URL`` to e.g. a vLLM
   server exposing ``/v1/chat/completions``; ``ChatOpenAI`` works
   unchanged and no real key is needed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from langchain_openai import ChatOpenAI

from rag_qa.config import Settings, settings as default_settings
from rag_qa.errors import provider_call

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)


def get_llm(config: Settings | None = None) -> ChatOpenAI:
    """Return the configured chat model.

    When ``llm_base_url`` is set the client is pointed at that endpoint
    instead of the OpenAI cloud API, with a dummy ``"EMPTY"`` key when
    none is configured.
    """
    config = config or default_settings
    config.validate_generation()
    kwargs: dict = {
        "model": config.llm_model_name,
        "temperature": config.llm_temperature,
        "max_retries": 0,
    }

    if config.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", config.llm_base_url)
        kwargs["base_url"] = config.llm_base_url
        # vLLM doesn't need a real key; LangChain requires a non-empty value.
        kwargs["api_key"] = config.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = config.openai_api_key

    return ChatOpenAI(**kwargs)


class GenerationProvider:
    """Turn a prompt string into the model's text completion."""

    def __init__(self, llm: BaseChatModel) -> None:
        self._llm = llm

    async def generate(self, prompt: str) -> str:
        with provider_call("generation", "generate"):
            message = await self._llm.ainvoke(prompt)
        content = message.content
        if isinstance(content, str):
            return content
        # Some providers return a list of content blocks.
        return "".join(
            block if isinstance(block, str) else block.get("text", "")
            for block in content
        )
