"""Error taxonomy shared by the character services."""

from __future__ import annotations

from typing import Iterable, List


class CharacterServiceError(RuntimeError):
    """Base class for failures raised by the character services."""


class MalformedResponseError(CharacterServiceError):
    """Raised when no JSON object can be recovered from model output."""


class InvalidCharacterDataError(CharacterServiceError):
    """Raised when a character document lacks required top-level fields."""

    def __init__(self, missing_fields: Iterable[str]):
        self.missing_fields: List[str] = list(missing_fields)
        super().__init__(f"Invalid character data: missing {', '.join(self.missing_fields)}")


class UpstreamGenerationError(CharacterServiceError):
    """Raised when the text generation provider fails or answers badly."""


class MissingCredentialError(CharacterServiceError):
    """Raised when a request omits the provider API key."""


class MissingInputError(CharacterServiceError):
    """Raised when a request omits the prompt, model, or other input."""


class BackupNotFoundError(CharacterServiceError):
    """Raised when a named backup does not exist."""
