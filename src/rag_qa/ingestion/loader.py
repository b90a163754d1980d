"""Document loaders — thin wrappers around LangChain document loaders."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING

from langchain_community.document_loaders import Docx2txtLoader, PyPDFLoader
from pypdf.errors import PyPdfError

from rag_qa.errors import LoadError, ParseError, UnsupportedFileType

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# Parser-level rejections of a malformed file, as opposed to I/O faults.
_FORMAT_ERRORS = (PyPdfError, zipfile.BadZipFile)


def load_pdf(path: str | Path) -> list[Document]:
    """Load a single PDF file, one document per page."""
    return PyPDFLoader(str(path)).load()


def load_docx(path: str | Path) -> list[Document]:
    """Load a single DOCX file as one document."""
    return Docx2txtLoader(str(path)).load()


LOADERS = {
    PDF_MIME_TYPE: load_pdf,
    DOCX_MIME_TYPE: load_docx,
}


def is_supported(mime_type: str | None) -> bool:
    return mime_type in LOADERS


def load_document(path: str | Path, mime_type: str | None) -> list[Document]:
    """Parse the file at *path* according to its declared *mime_type*.

    Parameters
    ----------
    path:
        Location of the staged file.
    mime_type:
        Content type declared by the uploader.

    Returns
    -------
    list[Document]
        Ordered text segments (pages for PDF) with loader metadata.

    Raises
    ------
    UnsupportedFileType
        *mime_type* is neither PDF nor DOCX.
    ParseError
        The parser rejected the file as malformed.
    LoadError
        Any other failure while reading the file.
    """
    loader = LOADERS.get(mime_type)  # type: ignore[arg-type]
    if loader is None:
        raise UnsupportedFileType(mime_type)

    try:
        documents = loader(path)
    except _FORMAT_ERRORS as exc:
        logger.error("Parser rejected %s as %s: %s", Path(path).name, mime_type, exc)
        raise ParseError("Could not parse the uploaded document", details=str(exc)) from exc
    except Exception as exc:
        logger.error("Failed to load %s: %s", Path(path).name, exc)
        raise LoadError("Could not read the uploaded document", details=str(exc)) from exc

    logger.info("Loaded %d segment(s) from %s", len(documents), Path(path).name)
    return documents
