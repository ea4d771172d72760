"""Merge a freshly generated character against the document it refines."""

from __future__ import annotations

import re
from dataclasses import replace
from enum import Enum
from typing import Optional

from .character_schema import DEFAULT_CHARACTER_LABEL, CharacterDocument

# Capitalised word sequence following "name", e.g. "her name is Luna Starfall"
# or "change the name to Kai". Lowercase particles and non-Latin scripts are
# not recognised. The name must sit on the same line as "name".
_NAME_PATTERN = re.compile(
    r"\b(?i:name)\b(?:[ \t]+(?i:is|to|as|should[ \t]+be))?[ \t]*[:=]?[ \t]*"
    r"(?P<name>[A-Z][\w'\-]*(?:[ \t]+[A-Z][\w'\-]*)*)"
)


class ReconcileMode(str, Enum):
    GENERATE = "generate"
    REFINE = "refine"


def extract_requested_name(instructions: Optional[str]) -> Optional[str]:
    """Return the name requested in refinement ``instructions``, if any."""

    if not instructions:
        return None
    match = _NAME_PATTERN.search(instructions)
    if not match:
        return None
    return match.group("name").strip() or None


def reconcile_character(
    generated: CharacterDocument,
    previous: Optional[CharacterDocument],
    mode: ReconcileMode,
    instructions: str = "",
) -> CharacterDocument:
    """Apply the refinement carry-forward rules to ``generated``.

    In generate mode, or when there is nothing to refine, ``generated`` is
    returned as is. In refine mode existing knowledge always wins, the name
    comes from the instructions or the previous document, and the
    configuration fields are carried forward whenever the model left them
    empty. Example dialogue is relabelled with the final name.
    """

    if mode is not ReconcileMode.REFINE or previous is None:
        return generated

    knowledge = list(previous.knowledge) if previous.knowledge else list(generated.knowledge)
    name = extract_requested_name(instructions) or previous.name or generated.name

    label = name or DEFAULT_CHARACTER_LABEL
    message_examples = [replace(exchange, character_label=label) for exchange in generated.message_examples]

    return replace(
        generated,
        name=name,
        knowledge=knowledge,
        message_examples=message_examples,
        clients=list(generated.clients or previous.clients),
        model_provider=generated.model_provider or previous.model_provider,
        settings=previous.settings if generated.settings.is_empty() else generated.settings,
        plugins=list(generated.plugins or previous.plugins),
        people=list(generated.people or previous.people),
    )


__all__ = ["ReconcileMode", "extract_requested_name", "reconcile_character"]
