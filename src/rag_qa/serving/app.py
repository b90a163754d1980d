"""FastAPI application exposing document upload and question answering."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from rag_qa.config import Settings, settings as default_settings
from rag_qa.errors import BadRequest, RagQAError, provider_call, truncate
from rag_qa.generation.answerer import QueryPipeline, build_query_pipeline
from rag_qa.ingestion.pipeline import IngestionPipeline, UploadedFile, build_ingestion_pipeline
from rag_qa.logging_config import setup_logging

logger = logging.getLogger(__name__)


# ── Request / Response schemas ────────────────────────────────────────
class QuestionRequest(BaseModel):
    """Incoming question from the user."""

    question: str | None = None


class QuestionResponse(BaseModel):
    """Answer returned by the query pipeline."""

    answer: str
    sources: list[str] = []


class UploadResponse(BaseModel):
    status: str = "success"
    message: str = "Document processed and stored"
    chunk_count: int


# ── Dependencies ──────────────────────────────────────────────────────
def get_ingestion_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.ingestion


def get_query_pipeline(request: Request) -> QueryPipeline:
    return request.app.state.query


def _wire_pipelines(config: Settings) -> tuple[IngestionPipeline, QueryPipeline]:
    """Build both pipelines over one shared store and embedding model."""
    config.validate_store()
    config.validate_generation()

    from rag_qa.ingestion.embedder import get_embedding_function
    from rag_qa.retrieval.chroma_store import ChromaVectorStore
    from rag_qa.retrieval.retriever import build_retriever

    embeddings = get_embedding_function(config)
    store = ChromaVectorStore(embeddings, config=config)
    ingestion = build_ingestion_pipeline(config, store=store, embeddings=embeddings)
    retriever = build_retriever(config, store=store, embeddings=embeddings)
    query = build_query_pipeline(config, retriever=retriever)
    return ingestion, query


# ── Routes ────────────────────────────────────────────────────────────
router = APIRouter()


@router.post("/question", response_model=QuestionResponse)
async def question_answer(
    body: QuestionRequest,
    pipeline: QueryPipeline = Depends(get_query_pipeline),
) -> QuestionResponse:
    """Answer a question from the indexed documents."""
    try:
        result = await pipeline.answer(body.question)
    except RagQAError:
        raise
    except Exception as exc:
        logger.exception("Error processing question %r", truncate(body.question))
        raise RagQAError("Error processing question", details=str(exc)) from exc
    return QuestionResponse(answer=result.answer, sources=result.sources)


@router.post("/upload", response_model=UploadResponse)
async def upload_document(
    file: UploadFile | None = File(default=None),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
) -> UploadResponse:
    """Store an uploaded PDF or DOCX in the vector index."""
    if file is None:
        logger.error("No file uploaded")
        raise BadRequest("No file uploaded")

    upload = UploadedFile(
        content=await file.read(),
        mime_type=file.content_type,
        filename=file.filename or "upload",
    )
    try:
        result = await pipeline.ingest(upload)
    except RagQAError:
        raise
    except Exception as exc:
        logger.exception("Error processing document %r", truncate(upload.filename))
        raise RagQAError("Error processing document", details=str(exc)) from exc
    return UploadResponse(chunk_count=result.chunk_count)


@router.get("/stats")
async def index_stats(pipeline: QueryPipeline = Depends(get_query_pipeline)) -> dict[str, Any]:
    """Statistics reported by the vector store."""
    with provider_call("store", "describe_stats"):
        return await asyncio.to_thread(pipeline.retriever.store.describe_stats)


# ── Error handlers ────────────────────────────────────────────────────
async def _service_error_handler(request: Request, exc: RagQAError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "details": exc.details or exc.message},
        )
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("%s %s invalid request: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Route Not Found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": message})


# ── Application factory ───────────────────────────────────────────────
def create_app(
    config: Settings | None = None,
    *,
    ingestion: IngestionPipeline | None = None,
    query: QueryPipeline | None = None,
) -> FastAPI:
    """Build the FastAPI app.

    Pipelines passed in are used as-is; otherwise they are wired from
    *config* at startup, which fails fast on missing settings.
    """
    config = config or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.ingestion is None or app.state.query is None:
            setup_logging(config.log_level, config.log_file)
            try:
                app.state.ingestion, app.state.query = _wire_pipelines(config)
            except RagQAError as exc:
                logger.error("Startup failed: %s", exc.message)
                raise
        yield

    app = FastAPI(
        title="RAG QA API",
        version="0.1.0",
        description="Upload PDF/DOCX documents and ask questions about them.",
        lifespan=lifespan,
    )
    app.state.ingestion = ingestion
    app.state.query = query

    @app.get("/health")
    async def health(request: Request) -> JSONResponse:
        """Liveness check; reports ``degraded`` when the vector store is unreachable."""
        pipeline = request.app.state.query
        if pipeline is None:
            return JSONResponse({"status": "ok"})
        if await asyncio.to_thread(pipeline.retriever.store.health_check):
            return JSONResponse({"status": "ok"})
        return JSONResponse(status_code=503, content={"status": "degraded"})

    app.include_router(router, prefix=config.api_prefix)
    app.add_exception_handler(RagQAError, _service_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    return app


app = create_app()
