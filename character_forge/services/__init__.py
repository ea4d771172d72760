"""Service layer helpers for building, generating and repairing characters."""

from __future__ import annotations

from .character_schema import CharacterDocument, normalize_character  # noqa: F401
from .errors import (  # noqa: F401
    CharacterServiceError,
    InvalidCharacterDataError,
    MalformedResponseError,
    MissingCredentialError,
    MissingInputError,
    UpstreamGenerationError,
)
from .json_repair import extract_json_object  # noqa: F401
from .reconcile import ReconcileMode, reconcile_character  # noqa: F401
from .sentences import split_into_sentences  # noqa: F401

__all__ = [
    "CharacterDocument",
    "CharacterServiceError",
    "InvalidCharacterDataError",
    "MalformedResponseError",
    "MissingCredentialError",
    "MissingInputError",
    "ReconcileMode",
    "UpstreamGenerationError",
    "extract_json_object",
    "normalize_character",
    "reconcile_character",
    "split_into_sentences",
]
