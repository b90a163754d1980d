"""Error taxonomy shared by the pipelines and the HTTP layer.

Every error carries the HTTP status it maps to, so the serving layer can
render it without knowing where it was raised.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class RagQAError(Exception):
    """Base class for all service errors."""

    status_code: int = 500

    def __init__(self, message: str, *, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class BadRequest(RagQAError):
    """The client sent something we cannot process (missing question or file)."""

    status_code = 400


class UnsupportedFileType(BadRequest):
    def __init__(self, mime_type: str | None) -> None:
        super().__init__(
            "Invalid file type. Only PDF and DOCX are allowed.",
            details=f"Received content type {mime_type!r}",
        )
        self.mime_type = mime_type


class ConfigurationError(RagQAError):
    """A required setting is missing or invalid."""


class ProviderError(RagQAError):
    """An external provider (store, embedding, generation) failed."""

    def __init__(self, provider: str, operation: str, message: str) -> None:
        super().__init__(f"{provider} {operation} failed", details=message)
        self.provider = provider
        self.operation = operation


class LoadError(RagQAError):
    """The uploaded document could not be read."""


class ParseError(LoadError):
    """The parser explicitly rejected the document format."""

    status_code = 400


def truncate(text: str | None, limit: int = 80) -> str:
    """Shorten *text* for log lines."""
    if text is None:
        return ""
    text = " ".join(text.split())
    return text if len(text) <= limit else text[: limit - 1] + "…"


@contextmanager
def provider_call(provider: str, operation: str) -> Iterator[None]:
    """Translate any SDK exception raised inside the block into :class:`ProviderError`."""
    try:
        yield
    except RagQAError:
        raise
    except Exception as exc:
        logger.error("%s %s failed: %s", provider, operation, exc)
        raise ProviderError(provider, operation, str(exc)) from exc
