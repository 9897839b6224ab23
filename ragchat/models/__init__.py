"""Pydantic models for API requests and responses.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - ChatMessage: Individual message in conversation
    - ChatRequest: Streaming chat request payload
    - TextUploadRequest / TextUploadResponse: Text source indexing
    - PDFUploadResponse: PDF upload result
    - DocumentsResponse: Sources indexed for a thread
    - RetrievalConfig: Per-run retrieval graph configuration
"""

from ragchat.models.schemas import (
    CancelRunResponse,
    ChatMessage,
    ChatRequest,
    DocumentSource,
    DocumentsResponse,
    PDFUploadResponse,
    RetrievalConfig,
    TextSource,
    TextUploadRequest,
    TextUploadResponse,
    ThreadResponse,
)

__all__ = [
    "CancelRunResponse",
    "ChatMessage",
    "ChatRequest",
    "DocumentSource",
    "DocumentsResponse",
    "PDFUploadResponse",
    "RetrievalConfig",
    "TextSource",
    "TextUploadRequest",
    "TextUploadResponse",
    "ThreadResponse",
]
