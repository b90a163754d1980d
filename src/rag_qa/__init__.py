"""rag-qa — question answering over uploaded PDF and DOCX documents."""

__version__ = "0.1.0"
