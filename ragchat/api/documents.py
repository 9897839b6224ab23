"""Listing and deletion of a thread's indexed documents."""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from ragchat.graph.documents import get_document_index
from ragchat.models.schemas import DocumentsResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["documents"])


def _require_thread_id(thread_id: str | None) -> str:
    if not thread_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="threadId is required",
        )
    return thread_id


@router.get("", response_model=DocumentsResponse)
async def list_documents(
    thread_id: Annotated[str | None, Query(alias="threadId")] = None,
) -> DocumentsResponse:
    """List files and text sources indexed for a thread."""
    thread_id = _require_thread_id(thread_id)
    return get_document_index().list_sources(thread_id)


@router.delete("")
async def delete_documents(
    thread_id: Annotated[str | None, Query(alias="threadId")] = None,
    delete_type: Annotated[str | None, Query(alias="type")] = None,
    filename: str | None = None,
) -> dict[str, bool]:
    """Delete a file, or all text sources, from a thread.

    Raises:
        400: Missing thread id, bad type, or file deletion without filename.
        500: The vector store deletion failed.
    """
    thread_id = _require_thread_id(thread_id)
    if delete_type not in ("text", "file"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="type must be 'text' or 'file'",
        )
    if delete_type == "file" and not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="filename is required when type is 'file'",
        )

    try:
        success = get_document_index().delete_sources(thread_id, delete_type, filename)
    except Exception as e:
        logger.error(f"Delete failed for thread {thread_id}: {e}")
        success = False

    if not success:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete documents",
        )
    return {"success": True}
