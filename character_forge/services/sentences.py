"""Sentence helpers shared by the document builder and knowledge extraction."""

from __future__ import annotations

import re
from typing import List

_SENTENCE_BOUNDARY = re.compile(r"[.!?]+")
_TERMINAL_PUNCTUATION = (".", "!", "?")


def split_into_sentences(text: object) -> List[str]:
    """Split ``text`` into period-terminated sentence fragments.

    Terminal punctuation is normalised to a single period, so ``"Hi! Bye?"``
    becomes ``["Hi.", "Bye."]``. Abbreviations such as ``"Dr. Smith"`` are
    split as well; this is a heuristic, not a parser.
    """

    if not isinstance(text, str) or not text.strip():
        return []

    sentences: List[str] = []
    for fragment in _SENTENCE_BOUNDARY.split(text):
        cleaned = fragment.strip()
        if cleaned:
            sentences.append(cleaned + ".")
    return sentences


def split_adjectives(text: object) -> List[str]:
    """Return lowercase single-word tokens from ``text``."""

    if not isinstance(text, str) or not text.strip():
        return []
    return [word.lower() for word in text.split() if word]


def ensure_terminal_punctuation(line: str) -> str:
    """Append a period to ``line`` unless it already ends a sentence."""

    cleaned = line.strip()
    if not cleaned or cleaned.endswith(_TERMINAL_PUNCTUATION):
        return cleaned
    return cleaned + "."


def normalize_sentence_entry(entry: object) -> str:
    """Return a single sentence entry terminated by exactly one period.

    Entries are kept whole (multi-sentence posts are not split); only the
    trailing ``.``/``!``/``?`` run is replaced.
    """

    if isinstance(entry, bool) or not isinstance(entry, (str, int, float)):
        return ""
    cleaned = str(entry).strip().rstrip(".!?").rstrip()
    if not cleaned:
        return ""
    return cleaned + "."
