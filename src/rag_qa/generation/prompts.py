"""Prompt template for retrieval-augmented answers.

Kept in one place so the wording is easy to audit and version.
"""

from __future__ import annotations

from langchain_core.prompts import PromptTemplate

NO_DOCUMENTS_ANSWER = "Sorry, I couldn't find any relevant documents to answer your question."

CONTEXT_SEPARATOR = "\n\n"

QA_TEMPLATE = """\
Context: {context}

Question: {question}

Please provide a concise and accurate answer to the question based only on \
the given context. If the context doesn't contain enough information to \
answer the question, please state that.
"""

QA_PROMPT = PromptTemplate.from_template(QA_TEMPLATE)


def build_context(chunks: list[str]) -> str:
    """Join retrieved chunk texts in ranked order."""
    return CONTEXT_SEPARATOR.join(chunks)


def build_qa_prompt(question: str, chunks: list[str]) -> str:
    """Render the question-answering prompt for *question* over *chunks*."""
    return QA_PROMPT.format(context=build_context(chunks), question=question)
