"""
Ingestion — document loading, chunking, and embedding into the vector store.

This module turns an uploaded PDF or DOCX into embedded chunks stored
in the vector database under the service's namespace.
"""
