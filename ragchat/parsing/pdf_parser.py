"""PDF text extraction for document uploads using pypdf."""

import io
import logging

from pydantic import BaseModel, Field
from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 2 * 1024 * 1024  # 2MB
PDF_SIGNATURE = b"%PDF-"


class PDFContent(BaseModel):
    """Extracted content from a PDF file.

    Attributes:
        text: Page texts joined with blank lines.
        pages: Total number of pages in the document.
        title: Document title from the PDF metadata, if any.
    """

    text: str
    pages: int = Field(ge=0)
    title: str | None = None


class PDFParseError(Exception):
    """Raised when PDF parsing fails."""

    pass


def is_pdf_bytes(file_content: bytes) -> bool:
    """Check the PDF signature at the start of the file."""
    return file_content[: len(PDF_SIGNATURE)] == PDF_SIGNATURE


def parse_pdf(file_content: bytes) -> PDFContent:
    """Parse a PDF file and extract its text content.

    Args:
        file_content: Raw bytes of the PDF file.

    Returns:
        PDFContent with extracted text and page count.

    Raises:
        PDFParseError: If the file is empty, too large, not a PDF, or corrupt.
    """
    if not file_content:
        raise PDFParseError("File is empty")
    if len(file_content) > MAX_FILE_SIZE:
        raise PDFParseError(f"File size must be less than {MAX_FILE_SIZE // (1024 * 1024)}MB")
    if not is_pdf_bytes(file_content):
        raise PDFParseError("Invalid PDF file contents")

    try:
        reader = PdfReader(io.BytesIO(file_content))
        pages = len(reader.pages)
    except PdfReadError as e:
        raise PDFParseError(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise PDFParseError(f"Failed to read PDF: {e}") from e

    if pages == 0:
        raise PDFParseError("PDF contains no pages")

    text_parts: list[str] = []
    for i, page in enumerate(reader.pages):
        try:
            page_text = page.extract_text()
        except Exception as e:
            logger.warning(f"Failed to extract text from page {i + 1}: {e}")
            continue
        if page_text:
            text_parts.append(page_text)

    text = "\n\n".join(text_parts)
    if not text.strip():
        logger.warning("PDF contains no extractable text (may be scanned/image-based)")

    title = None
    try:
        if reader.metadata and reader.metadata.get("/Title"):
            title = str(reader.metadata.get("/Title"))
    except Exception as e:
        logger.warning(f"Failed to read PDF metadata: {e}")

    return PDFContent(text=text, pages=pages, title=title)
