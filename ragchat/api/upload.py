"""Document upload endpoints.

Handles PDF and raw text uploads, validates them, and indexes them into
the thread's knowledge base.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Form, HTTPException, UploadFile, status

from ragchat.graph.documents import get_document_index
from ragchat.models.schemas import (
    MAX_ID_LENGTH,
    PDFUploadResponse,
    TextUploadRequest,
    TextUploadResponse,
)
from ragchat.parsing.pdf_parser import MAX_FILE_SIZE, PDFParseError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["upload"])

ALLOWED_CONTENT_TYPES = ("application/pdf",)


def _validate_pdf_upload(file: UploadFile) -> str:
    """Check the upload's name and declared content type.

    Returns:
        The validated filename.

    Raises:
        HTTPException: 400 if the file is not declared as a PDF.
    """
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file provided",
        )

    if not file.filename.lower().endswith(".pdf"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only .pdf files are allowed",
        )

    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only PDF files are allowed",
        )

    return file.filename


async def _read_and_validate_size(file: UploadFile) -> bytes:
    """Read the upload, rejecting empty and oversized files."""
    content = await file.read()

    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File is empty",
        )

    if len(content) > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=f"File size must be less than {MAX_FILE_SIZE // (1024 * 1024)}MB",
        )

    return content


@router.post("/pdf", response_model=PDFUploadResponse)
async def upload_pdf(
    file: UploadFile,
    thread_id: Annotated[str, Form(alias="threadId", min_length=1, max_length=MAX_ID_LENGTH)],
) -> PDFUploadResponse:
    """Upload a PDF and index it for a thread.

    Raises:
        400: Not a PDF, empty, or corrupt.
        413: File exceeds the size limit.
        500: Indexing failed.
    """
    filename = _validate_pdf_upload(file)
    content = await _read_and_validate_size(file)

    try:
        pdf_content = await get_document_index().add_pdf(thread_id, filename, content)
    except PDFParseError as e:
        logger.warning(f"PDF parse error for {filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    except Exception as e:
        logger.error(f"Failed to index {filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store document in knowledge base",
        ) from e

    return PDFUploadResponse(filename=filename, pages=pdf_content.pages, success=True)


@router.post("/text", response_model=TextUploadResponse)
async def upload_text(request: TextUploadRequest) -> TextUploadResponse:
    """Index pasted text for a thread.

    Raises:
        400: Missing, blank or oversized text or ids.
        500: Indexing failed.
    """
    try:
        text_id = await get_document_index().add_text(
            request.thread_id,
            request.text,
            request.text_id,
        )
    except Exception as e:
        logger.error(f"Failed to index text for thread {request.thread_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store text in knowledge base",
        ) from e

    return TextUploadResponse(success=True, thread_id=request.thread_id, text_id=text_id)
