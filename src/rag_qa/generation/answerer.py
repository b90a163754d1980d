"""Query pipeline — question → retrieve → prompt → generate."""

from __future__ import annotations

import logging

from pydantic import BaseModel

from rag_qa.config import Settings, settings as default_settings
from rag_qa.errors import BadRequest, truncate
from rag_qa.generation.llm import GenerationProvider, get_llm
from rag_qa.generation.prompts import NO_DOCUMENTS_ANSWER, build_qa_prompt
from rag_qa.logging_config import log_latency
from rag_qa.retrieval.retriever import SemanticRetriever, build_retriever

logger = logging.getLogger(__name__)


class Answer(BaseModel):
    """Answer returned for a question, with the chunks it was grounded on."""

    answer: str
    sources: list[str] = []
    used_fallback: bool = False


class QueryPipeline:
    """Answer questions from the indexed documents.

    Parameters
    ----------
    retriever:
        Supplies ranked chunks for a question.
    generator:
        Produces the final answer from the rendered prompt.
    """

    def __init__(self, retriever: SemanticRetriever, generator: GenerationProvider) -> None:
        self._retriever = retriever
        self._generator = generator

    @property
    def retriever(self) -> SemanticRetriever:
        return self._retriever

    @log_latency("answer")
    async def answer(self, question: str | None) -> Answer:
        if not question or not question.strip():
            logger.error("No question provided")
            raise BadRequest("No question provided")

        logger.info("Received question: %r", truncate(question))
        results = await self._retriever.retrieve(question)
        if not results:
            logger.info("No relevant documents for %r", truncate(question))
            return Answer(answer=NO_DOCUMENTS_ANSWER)

        prompt = build_qa_prompt(question, [r.content for r in results])
        text = await self._generator.generate(prompt)
        logger.info("Answer generated successfully from %d chunk(s)", len(results))

        return Answer(
            answer=text,
            sources=[r.citation.short_ref() for r in results],
            used_fallback=results[0].citation.retrieved_via == "fallback",
        )


def build_query_pipeline(
    config: Settings | None = None,
    *,
    retriever: SemanticRetriever | None = None,
    generator: GenerationProvider | None = None,
) -> QueryPipeline:
    """Wire a :class:`QueryPipeline` from *config* (global settings by default)."""
    config = config or default_settings
    if generator is None:
        generator = GenerationProvider(get_llm(config))
    if retriever is None:
        retriever = build_retriever(config)
    return QueryPipeline(retriever, generator)
