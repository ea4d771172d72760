"""Turn uploaded reference files into knowledge lines."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import Iterable, List, Optional, Sequence

from pdf_handler import PDFExtractionError, extract_pdf_text

from .sentences import split_into_sentences

LOGGER = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
DEFAULT_TEXT_EXTENSIONS = (".txt", ".md", ".json", ".yml", ".csv")
LIST_MARKER = "-"

_WHITESPACE = re.compile(r"\s+")


@dataclass
class UploadedFile:
    name: str
    mime_type: str
    data: bytes


def knowledge_from_text(text: str) -> List[str]:
    """Split ``text`` into knowledge sentences, skipping list-marker fragments."""

    lines: List[str] = []
    for sentence in split_into_sentences(text):
        collapsed = _WHITESPACE.sub(" ", sentence)
        if collapsed.startswith(LIST_MARKER):
            continue
        lines.append(collapsed)
    return lines


def is_text_file(filename: str, extensions: Sequence[str] = DEFAULT_TEXT_EXTENSIONS) -> bool:
    suffix = PurePath(filename or "").suffix.lower()
    return bool(suffix) and suffix in {extension.lower() for extension in extensions}


def is_pdf_file(upload: UploadedFile) -> bool:
    return upload.mime_type == PDF_MIME_TYPE or PurePath(upload.name or "").suffix.lower() == ".pdf"


def read_upload_text(
    upload: UploadedFile,
    extensions: Sequence[str] = DEFAULT_TEXT_EXTENSIONS,
) -> Optional[str]:
    """Return the plain text of ``upload`` or ``None`` for unsupported files."""

    if is_pdf_file(upload):
        return extract_pdf_text(upload.data)
    if is_text_file(upload.name, extensions):
        return upload.data.decode("utf-8", errors="replace")
    return None


def extract_knowledge(
    files: Iterable[UploadedFile],
    *,
    text_extensions: Sequence[str] = DEFAULT_TEXT_EXTENSIONS,
) -> List[str]:
    """Extract knowledge lines from every supported file in ``files``.

    A file that cannot be read is logged and skipped so the remaining uploads
    still contribute.
    """

    knowledge: List[str] = []
    for upload in files:
        try:
            text = read_upload_text(upload, text_extensions)
        except (PDFExtractionError, UnicodeError) as exc:
            LOGGER.error("Error processing file %s: %s", upload.name, exc)
            continue

        if text is None:
            LOGGER.info("Skipping unsupported knowledge file %s (%s).", upload.name, upload.mime_type)
            continue

        knowledge.extend(knowledge_from_text(text))
    return knowledge


def parse_knowledge_list(raw: Optional[str]) -> Optional[List[str]]:
    """Parse a JSON list of knowledge lines; ``None`` when ``raw`` is not one.

    Blank input yields an empty list.
    """

    text = (raw or "").strip()
    if not text:
        return []
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(value, list) or not all(isinstance(entry, str) for entry in value):
        return None
    return value


def append_knowledge(existing: Optional[Sequence[str]], additions: Sequence[str]) -> List[str]:
    """Return ``existing`` followed by ``additions``; nothing is replaced."""

    return [*(existing or []), *additions]


__all__ = [
    "DEFAULT_TEXT_EXTENSIONS",
    "UploadedFile",
    "append_knowledge",
    "extract_knowledge",
    "is_text_file",
    "knowledge_from_text",
    "parse_knowledge_list",
    "read_upload_text",
]
