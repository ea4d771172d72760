"""Helpers for turning uploaded PDF documents into plain text.

The knowledge pipeline only understands plain text, so PDF uploads are routed
through :func:`extract_pdf_text` first. Typographic punctuation is folded to
ASCII on the way out; this keeps sentence splitting and list-marker detection
working for bullets rendered as en dashes or curly quotes.
"""
from __future__ import annotations

import io
import logging
import unicodedata

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

LOGGER = logging.getLogger(__name__)


class PDFExtractionError(RuntimeError):
    """Raised when text cannot be extracted from a PDF payload."""


_PDF_TEXT_REPLACEMENTS = {
    ord("\u2010"): "-",  # hyphen
    ord("\u2011"): "-",  # non-breaking hyphen
    ord("\u2012"): "-",  # figure dash
    ord("\u2013"): "-",  # en dash
    ord("\u2014"): "-",  # em dash
    ord("\u2212"): "-",  # minus sign
    ord("\u2022"): "-",  # bullet
    ord("\u2018"): "'",  # left single quote
    ord("\u2019"): "'",  # right single quote / apostrophe
    ord("\u201C"): '"',  # left double quote
    ord("\u201D"): '"',  # right double quote
    ord("\u00A0"): " ",  # non-breaking space
    ord("\u202F"): " ",  # narrow no-break space
    ord("\u200B"): "",  # zero-width space
    ord("\uFEFF"): "",  # BOM
}


def normalize_pdf_text(text: str) -> str:
    """Return ``text`` with compatibility characters and typographic marks folded."""

    normalized = unicodedata.normalize("NFKC", text or "")
    return normalized.translate(_PDF_TEXT_REPLACEMENTS)


def extract_pdf_text(data: bytes) -> str:
    """Return the concatenated text of every page in the PDF ``data``."""

    if not data:
        raise PDFExtractionError("The PDF upload is empty.")

    try:
        reader = PdfReader(io.BytesIO(data))
        pages = list(reader.pages)
    except (PdfReadError, ValueError, OSError) as exc:
        raise PDFExtractionError(f"Unable to read PDF: {exc}") from exc

    texts = []
    for index, page in enumerate(pages, start=1):
        try:
            texts.append(page.extract_text() or "")
        except Exception as exc:  # pragma: no cover - PyPDF2 raises assorted errors per page
            LOGGER.warning("Skipping unreadable PDF page %s: %s", index, exc)

    return normalize_pdf_text("\n".join(texts)).strip()


__all__ = ["PDFExtractionError", "extract_pdf_text", "normalize_pdf_text"]
