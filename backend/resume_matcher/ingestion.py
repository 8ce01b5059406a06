"""
Document Ingestion
===================
Turns an uploaded PDF into plain text. Limits are checked before the
parser ever sees the bytes.
"""

import io
import logging
from typing import Iterable, Optional

import PyPDF2

from .errors import (
    ExtractionError,
    PayloadTooLargeError,
    UnsupportedFormatError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def check_declared_size(content_length: Optional[str], max_bytes: int):
    """Reject on the Content-Length header before reading the body."""
    if not content_length:
        return
    try:
        declared = int(content_length)
    except ValueError:
        return
    if declared > max_bytes:
        raise PayloadTooLargeError(_too_large_message(max_bytes))


def check_upload(file_bytes: bytes, mime_type: Optional[str], max_bytes: int,
                 allowed_types: Iterable[str] = ("application/pdf",)):
    if not file_bytes:
        raise ValidationError("No file uploaded")
    if len(file_bytes) > max_bytes:
        raise PayloadTooLargeError(_too_large_message(max_bytes))
    if mime_type not in tuple(allowed_types):
        raise UnsupportedFormatError()


def _too_large_message(max_bytes: int) -> str:
    return f"File exceeds the {max_bytes // (1024 * 1024)}MB upload limit"


def extract_pdf_text(file_bytes: bytes) -> str:
    """Text of every page, pages joined by a newline. Layout is not kept."""
    try:
        reader = PyPDF2.PdfReader(io.BytesIO(file_bytes))
        pages = []
        for page in reader.pages:
            pages.append((page.extract_text() or "").strip())
    except Exception as e:
        logger.error(f"PDF extraction error: {e}")
        raise ExtractionError()
    text = "\n".join(pages).strip()
    logger.info(f"Extracted {len(text)} chars from {len(pages)} page(s)")
    return text


def extract_text(file_bytes: bytes, mime_type: Optional[str], max_bytes: int = 5 * 1024 * 1024,
                 allowed_types: Iterable[str] = ("application/pdf",)) -> str:
    check_upload(file_bytes, mime_type, max_bytes, allowed_types)
    return extract_pdf_text(file_bytes)
