"""Shared pytest configuration, fakes and fixtures.

The fakes stand in for the three external providers (vector store,
embedding model, chat model) so the pipelines can be exercised without
Chroma, HuggingFace or OpenAI.
"""

from __future__ import annotations

import io
import math
import zipfile
from typing import Any
from xml.sax.saxutils import escape

import pytest
from langchain_core.embeddings import Embeddings

from rag_qa.config import Settings
from rag_qa.retrieval.base import VectorStoreBase
from rag_qa.retrieval.models import NAMESPACE_KEY, IndexedRecord


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


class LetterEmbeddings(Embeddings):
    """Embeds text as the normalised letter counts of ``alphabet``."""

    def __init__(self, alphabet: str = "abc") -> None:
        self.alphabet = alphabet
        self.document_calls: list[list[str]] = []
        self.query_calls: list[str] = []

    def _vector(self, text: str) -> list[float]:
        counts = [float(text.count(ch)) for ch in self.alphabet]
        norm = math.sqrt(sum(c * c for c in counts)) or 1.0
        return [c / norm for c in counts]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        return self._vector(text)


class FakeVectorStore(VectorStoreBase):
    """In-memory store with cosine-similarity search.

    ``search_returns_empty`` makes the high-level search path come back
    empty while the raw query still sees every record.
    """

    def __init__(self, embeddings: Embeddings, *, search_returns_empty: bool = False) -> None:
        super().__init__("test-collection")
        self._embeddings = embeddings
        self.search_returns_empty = search_returns_empty
        self.records: dict[str, IndexedRecord] = {}
        self.namespaces: dict[str, str] = {}
        self.calls: list[tuple[str, Any]] = []

    def create_or_open_index(self, name: str) -> None:
        self.calls.append(("create_or_open_index", name))
        self.collection_name = name

    def upsert(self, namespace: str, records: list[IndexedRecord]) -> int:
        self.calls.append(("upsert", namespace, len(records)))
        for record in records:
            self.records[record.id] = record
            self.namespaces[record.id] = namespace
        return len(records)

    def _ranked(self, namespace: str, vector: list[float], k: int) -> list[dict[str, Any]]:
        scored = []
        for record_id, record in self.records.items():
            if self.namespaces[record_id] != namespace:
                continue
            score = sum(a * b for a, b in zip(vector, record.embedding))
            scored.append((score, record))
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [
            {
                "id": record.id,
                "content": record.metadata["page_content"],
                "score": score,
                "metadata": {**record.metadata, NAMESPACE_KEY: namespace},
            }
            for score, record in scored[:k]
        ]

    def similarity_search(self, namespace: str, query: str, *, k: int = 3) -> list[dict[str, Any]]:
        self.calls.append(("similarity_search", namespace, k))
        if self.search_returns_empty:
            return []
        return self._ranked(namespace, self._embeddings.embed_query(query), k)

    def raw_query(self, namespace: str, vector: list[float], *, k: int = 10) -> list[dict[str, Any]]:
        self.calls.append(("raw_query", namespace, k))
        return self._ranked(namespace, vector, k)

    def describe_stats(self) -> dict[str, Any]:
        return {"index": self.collection_name, "total_record_count": len(self.records)}

    def health_check(self) -> bool:
        return True


class RecordingGenerator:
    """Generation provider double that remembers every prompt."""

    def __init__(self, reply: str = "The answer.") -> None:
        self.reply = reply
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


def make_docx(*paragraphs: str) -> bytes:
    """Build a minimal DOCX archive holding *paragraphs*."""
    body = "".join(f"<w:p><w:r><w:t>{escape(p)}</w:t></w:r></w:p>" for p in paragraphs)
    document = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
        f"<w:body>{body}</w:body></w:document>"
    )
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("[Content_Types].xml", '<?xml version="1.0"?><Types/>')
        zf.writestr("word/document.xml", document)
    return buf.getvalue()


def make_pdf(text: str) -> bytes:
    """Build a one-page PDF that draws *text* in Helvetica."""
    escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    stream = f"BT /F1 12 Tf 72 720 Td ({escaped}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n%s\nendstream" % (len(stream), stream),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    buf = io.BytesIO()
    buf.write(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(buf.tell())
        buf.write(b"%d 0 obj\n%s\nendobj\n" % (number, body))
    xref_at = buf.tell()
    buf.write(b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1))
    for offset in offsets:
        buf.write(b"%010d 00000 n \n" % offset)
    buf.write(b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at))
    return buf.getvalue()


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def test_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        openai_api_key="sk-test",
        chroma_collection="test-collection",
        namespace="test-namespace",
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture()
def embeddings() -> LetterEmbeddings:
    return LetterEmbeddings()


@pytest.fixture()
def store(embeddings: LetterEmbeddings) -> FakeVectorStore:
    return FakeVectorStore(embeddings)


@pytest.fixture()
def generator() -> RecordingGenerator:
    return RecordingGenerator()
