"""Best-effort recovery of a JSON object from free-text model output.

Models asked for "JSON only" still wrap their answer in commentary, leave
trailing commas behind or emit JavaScript-isms such as ``undefined``. The
helpers below cut the outermost brace span out of the response and apply a
short, fixed sequence of textual repairs before parsing it again. Each repair
is a pure ``str -> str`` function so the pipeline can be tested step by step.

Unbalanced braces are not fixed; such responses fail with
:class:`MalformedResponseError`.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Dict, Sequence

from .errors import MalformedResponseError

LOGGER = logging.getLogger(__name__)

_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_EMPTY_OBJECT = re.compile(r"\{\s+\}")
_EMPTY_ARRAY = re.compile(r"\[\s+\]")
_UNDEFINED_VALUE = re.compile(r"([:\[,]\s*)undefined(?=\s*[,}\]])")
_MISSING_VALUE = re.compile(r":\s*(?=[,}\]])")
_WHITESPACE = re.compile(r"\s+")


def remove_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing ``}`` or ``]``."""

    return _TRAILING_COMMA.sub(r"\1", text)


def collapse_empty_containers(text: str) -> str:
    """Rewrite ``{ }`` and ``[ ]`` as ``{}`` and ``[]``."""

    return _EMPTY_ARRAY.sub("[]", _EMPTY_OBJECT.sub("{}", text))


def replace_undefined_values(text: str) -> str:
    """Replace a bare ``undefined`` value with ``null``."""

    return _UNDEFINED_VALUE.sub(r"\1null", text)


def fill_missing_values(text: str) -> str:
    """Turn ``"key": ,`` and ``"key": }`` into explicit ``null`` values."""

    return _MISSING_VALUE.sub(": null", text)


def collapse_whitespace(text: str) -> str:
    """Fold newlines and whitespace runs into single spaces and trim."""

    return _WHITESPACE.sub(" ", text).strip()


REPAIR_STEPS: Sequence[Callable[[str], str]] = (
    remove_trailing_commas,
    collapse_empty_containers,
    replace_undefined_values,
    fill_missing_values,
    collapse_whitespace,
)


def repair_json_text(text: str) -> str:
    """Run every repair step over ``text`` in order."""

    for step in REPAIR_STEPS:
        text = step(text)
    return text


def slice_outer_object(raw: str) -> str:
    """Return the span between the first ``{`` and the last ``}`` inclusive."""

    start_index = raw.find("{")
    end_index = raw.rfind("}")
    if start_index == -1 or end_index == -1 or end_index < start_index:
        raise MalformedResponseError("no JSON object found")
    return raw[start_index : end_index + 1]


def extract_json_object(raw: str) -> Dict[str, Any]:
    """Parse ``raw`` into a JSON object, repairing it when necessary."""

    text = raw if isinstance(raw, str) else ""

    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        parsed = None
    if isinstance(parsed, dict):
        return parsed

    candidate = slice_outer_object(text)
    LOGGER.debug("Extracted JSON candidate: %s", candidate)

    repaired = repair_json_text(candidate)
    LOGGER.debug("Repaired JSON candidate: %s", repaired)

    try:
        parsed = json.loads(repaired)
    except json.JSONDecodeError as exc:
        LOGGER.warning("Unable to parse repaired model output: %s", exc)
        raise MalformedResponseError(f"Failed to parse JSON content: {exc}") from exc

    if not isinstance(parsed, dict):
        raise MalformedResponseError("no JSON object found")

    LOGGER.info("Recovered JSON object from model output via repair pass.")
    return parsed


__all__ = [
    "REPAIR_STEPS",
    "collapse_empty_containers",
    "collapse_whitespace",
    "extract_json_object",
    "fill_missing_values",
    "remove_trailing_commas",
    "repair_json_text",
    "replace_undefined_values",
    "slice_outer_object",
]
