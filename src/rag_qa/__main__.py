"""Run the API with uvicorn: ``python -m rag_qa``."""

from __future__ import annotations

import os

import uvicorn

from rag_qa.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "rag_qa.serving.app:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8080")),
        log_level=settings.log_level.lower(),
    )
