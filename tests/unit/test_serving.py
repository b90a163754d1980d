"""Unit tests for the serving layer."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from conftest import FakeVectorStore, LetterEmbeddings, RecordingGenerator, make_docx
from fastapi import FastAPI
from fastapi.testclient import TestClient

from rag_qa.config import Settings
from rag_qa.errors import ConfigurationError
from rag_qa.generation.answerer import QueryPipeline
from rag_qa.generation.prompts import NO_DOCUMENTS_ANSWER
from rag_qa.ingestion.loader import DOCX_MIME_TYPE
from rag_qa.ingestion.pipeline import IngestionPipeline
from rag_qa.retrieval.retriever import SemanticRetriever
from rag_qa.serving.app import create_app


@pytest.fixture()
def app(
    store: FakeVectorStore,
    embeddings: LetterEmbeddings,
    generator: RecordingGenerator,
    test_settings: Settings,
) -> FastAPI:
    retriever = SemanticRetriever(store, embeddings, namespace=test_settings.namespace)
    return create_app(
        test_settings,
        ingestion=IngestionPipeline(store, embeddings, config=test_settings),
        query=QueryPipeline(retriever, generator),
    )


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def test_health_endpoint() -> None:
    """GET /health should return 200 with status ok."""
    from rag_qa.serving.app import app

    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


class TestHealthWithStore:
    def test_reachable_store_is_ok(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_unreachable_store_is_degraded(self, embeddings: LetterEmbeddings, test_settings: Settings) -> None:
        class DownStore(FakeVectorStore):
            def health_check(self) -> bool:
                return False

        store = DownStore(embeddings)
        app = create_app(
            test_settings,
            ingestion=IngestionPipeline(store, embeddings, config=test_settings),
            query=QueryPipeline(SemanticRetriever(store, embeddings), RecordingGenerator()),
        )

        response = TestClient(app).get("/health")

        assert response.status_code == 503
        assert response.json() == {"status": "degraded"}


def test_unknown_route_is_json_404(client: TestClient) -> None:
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Route Not Found"}


class TestQuestionRoute:
    def test_missing_question_is_400(self, client: TestClient, embeddings: LetterEmbeddings) -> None:
        response = client.post("/api/question", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "No question provided"}
        assert embeddings.query_calls == []

    def test_empty_question_is_400(self, client: TestClient) -> None:
        assert client.post("/api/question", json={"question": ""}).status_code == 400

    def test_malformed_body_is_400(self, client: TestClient) -> None:
        response = client.post(
            "/api/question", content="not json", headers={"content-type": "application/json"}
        )
        assert response.status_code == 400
        assert "error" in response.json()

    def test_no_documents_answer(self, client: TestClient, generator: RecordingGenerator) -> None:
        response = client.post("/api/question", json={"question": "Anything?"})
        assert response.status_code == 200
        assert response.json()["answer"] == NO_DOCUMENTS_ANSWER
        assert generator.prompts == []

    def test_provider_failure_is_500_with_details(
        self, store: FakeVectorStore, embeddings: LetterEmbeddings, test_settings: Settings
    ) -> None:
        class BrokenStore(FakeVectorStore):
            def describe_stats(self):
                raise ConnectionError("index not found")

        retriever = SemanticRetriever(BrokenStore(embeddings), embeddings)
        app = create_app(
            test_settings,
            ingestion=IngestionPipeline(store, embeddings, config=test_settings),
            query=QueryPipeline(retriever, RecordingGenerator()),
        )

        response = TestClient(app).post("/api/question", json={"question": "hi"})

        assert response.status_code == 500
        assert response.json() == {"error": "store describe_stats failed", "details": "index not found"}

    def test_unexpected_error_is_500(self, app: FastAPI) -> None:
        class ExplodingPipeline:
            async def answer(self, question):
                raise KeyError("surprise")

        app.state.query = ExplodingPipeline()
        response = TestClient(app).post("/api/question", json={"question": "hi"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Error processing question"
        assert "surprise" in body["details"]


class TestUploadRoute:
    def test_upload_then_ask(self, client: TestClient, generator: RecordingGenerator) -> None:
        docx = make_docx("c" * 1200)
        response = client.post(
            "/api/upload", files={"file": ("letters.docx", docx, DOCX_MIME_TYPE)}
        )

        assert response.status_code == 200
        assert response.json() == {
            "status": "success",
            "message": "Document processed and stored",
            "chunk_count": 2,
        }

        answer = client.post("/api/question", json={"question": "ccc"})
        assert answer.status_code == 200
        assert answer.json()["answer"] == "The answer."
        assert answer.json()["sources"][0].startswith("[letters.docx§")
        assert "c" * 200 in generator.prompts[0]

    def test_missing_file_is_400(self, client: TestClient) -> None:
        response = client.post("/api/upload", data={"note": "no file here"})
        assert response.status_code == 400
        assert response.json() == {"error": "No file uploaded"}

    def test_unsupported_type_is_400(self, client: TestClient, store: FakeVectorStore) -> None:
        response = client.post("/api/upload", files={"file": ("notes.txt", b"hello", "text/plain")})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid file type. Only PDF and DOCX are allowed."}
        assert store.calls == []

    def test_corrupt_docx_is_400(self, client: TestClient) -> None:
        response = client.post(
            "/api/upload", files={"file": ("bad.docx", b"garbage", DOCX_MIME_TYPE)}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Could not parse the uploaded document"}


def test_stats_route(client: TestClient) -> None:
    response = client.get("/api/stats")
    assert response.status_code == 200
    assert response.json() == {"index": "test-collection", "total_record_count": 0}


@pytest.fixture()
def root_logging() -> Iterator[None]:
    """Restore the root logger after a startup reconfigures it."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_startup_fails_fast_without_api_key(root_logging: None) -> None:
    config = Settings(_env_file=None, openai_api_key="", llm_base_url="")
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        with TestClient(create_app(config)):
            pass


def test_startup_failure_reaches_the_log_file(root_logging: None, tmp_path: Path) -> None:
    log_file = tmp_path / "service.log"
    config = Settings(_env_file=None, openai_api_key="", llm_base_url="", log_file=str(log_file))

    with pytest.raises(ConfigurationError):
        with TestClient(create_app(config)):
            pass

    for handler in logging.getLogger().handlers:
        handler.flush()
    text = log_file.read_text(encoding="utf-8")
    assert "Startup failed" in text
    assert "OPENAI_API_KEY" in text
