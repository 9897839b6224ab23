"""PDF parsing for uploaded documents.

Extracts plain text from PDF uploads with pypdf so it can be indexed in
the thread's knowledge base.
"""

from ragchat.parsing.pdf_parser import MAX_FILE_SIZE, PDFContent, PDFParseError, parse_pdf

__all__ = ["MAX_FILE_SIZE", "PDFContent", "PDFParseError", "parse_pdf"]
