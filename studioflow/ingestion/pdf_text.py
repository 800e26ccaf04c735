"""Plain-text extraction from uploaded PDF documents."""
from __future__ import annotations

import io
import logging
from typing import List

import pdfplumber

from studioflow.core.errors import EmptyDocument, UnreadableDocument

logger = logging.getLogger(__name__)


def extract_page_texts(content: bytes) -> List[str]:
    """Return the text of every page, in order.

    Image-only pages come back as empty strings; callers decide whether the
    document as a whole is usable.
    """

    if not content:
        raise EmptyDocument("Document is empty")

    try:
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            return [(page.extract_text() or "") for page in pdf.pages]
    except Exception as exc:
        raise UnreadableDocument(f"Could not read PDF: {exc}") from exc


def extract_text(content: bytes) -> str:
    """Join page texts with newlines, raising ``EmptyDocument`` when nothing is readable."""

    pages = extract_page_texts(content)
    text = "\n".join(pages).strip()
    logger.info("Extracted %d chars from %d page(s)", len(text), len(pages))
    if not text:
        raise EmptyDocument("PDF appears to be empty or image-based")
    return text


def text_lines(text: str) -> List[str]:
    """Split extracted text into stripped, non-empty lines."""

    return [line.strip() for line in text.splitlines() if line.strip()]
