"""
Serving — FastAPI application for document upload and question answering.
"""
