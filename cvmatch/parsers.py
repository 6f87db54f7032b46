"""Document text extraction for uploaded resumes.

Supports PDF (pdfplumber with pypdf fallback) and plain text. The result is
opaque to the pipeline beyond its text.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, BinaryIO

import pdfplumber
from pypdf import PdfReader

from .errors import ExtractionError

logger = logging.getLogger(__name__)


class FileType(str, Enum):
    """Supported file types."""
    PDF = "pdf"
    TEXT = "text"
    UNKNOWN = "unknown"


class ParseError(ExtractionError):
    """Raised when document parsing fails."""
    pass


@dataclass
class ParsedDocument:
    """Result of document parsing."""
    text: str
    file_type: FileType
    metadata: dict[str, Any] = field(default_factory=dict)


def detect_file_type(filename: str, content: bytes | None = None) -> FileType:
    """Detect file type from filename, falling back to magic numbers."""
    filename_lower = filename.lower()

    if filename_lower.endswith('.pdf'):
        return FileType.PDF
    elif filename_lower.endswith(('.txt', '.md')):
        return FileType.TEXT

    if content and content.startswith(b'%PDF'):
        return FileType.PDF

    return FileType.UNKNOWN


def extract_text_from_pdf(file_obj: BinaryIO) -> str:
    """Extract text from a PDF, trying pdfplumber first and pypdf second."""
    try:
        with pdfplumber.open(file_obj) as pdf:
            text_parts = [page.extract_text() for page in pdf.pages]
        text = "\n\n".join(part for part in text_parts if part)
        if text.strip():
            return text
        logger.info("pdfplumber found no text, trying pypdf")
    except Exception as e:
        logger.warning(f"pdfplumber extraction failed: {e}, trying pypdf")

    try:
        file_obj.seek(0)
        reader = PdfReader(file_obj)
        text_parts = [page.extract_text() for page in reader.pages]
        return "\n\n".join(part for part in text_parts if part)
    except Exception as e:
        logger.error(f"pypdf extraction also failed: {e}")
        raise ParseError(f"Failed to parse PDF: {e}") from e


def parse_file(file_obj: BinaryIO, filename: str) -> ParsedDocument:
    """Extract text from an uploaded file.

    Raises:
        ParseError: If the type is unsupported or no text could be extracted
    """
    head = file_obj.read(8)
    file_obj.seek(0)
    file_type = detect_file_type(filename, head)

    if file_type == FileType.PDF:
        text = extract_text_from_pdf(file_obj)
    elif file_type == FileType.TEXT:
        text = file_obj.read().decode("utf-8", errors="replace")
    else:
        raise ParseError(f"Unsupported file type: {filename}")

    if not text.strip():
        raise ParseError(f"No text could be extracted from {filename}")

    logger.info(f"Parsed {filename} as {file_type.value}: {len(text)} characters")
    return ParsedDocument(
        text=text,
        file_type=file_type,
        metadata={"filename": filename, "characters": len(text)},
    )
