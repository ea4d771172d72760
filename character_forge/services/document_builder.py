"""Assemble a character document from the editor's field state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .character_schema import (
    DEFAULT_CHARACTER_LABEL,
    CharacterDocument,
    CharacterSettings,
    CharacterStyle,
    MessageExchange,
    VoiceSettings,
)
from .sentences import ensure_terminal_punctuation, split_adjectives, split_into_sentences


@dataclass
class CharacterFormData:
    """Raw values as typed into the editor."""

    name: str = ""
    clients: List[str] = field(default_factory=list)
    model_provider: str = ""
    voice_model: str = ""
    bio: str = ""
    lore: str = ""
    topics: str = ""
    style_all: str = ""
    style_chat: str = ""
    style_post: str = ""
    post_examples: str = ""
    adjectives: List[str] = field(default_factory=list)
    people: List[str] = field(default_factory=list)
    knowledge: List[str] = field(default_factory=list)
    message_examples: List[Tuple[str, str]] = field(default_factory=list)


def build_character_document(
    fields: CharacterFormData,
    knowledge: Optional[Sequence[str]] = None,
) -> CharacterDocument:
    """Build the canonical document from ``fields``.

    Knowledge lines typed into the editor take precedence; ``knowledge`` (for
    example lines extracted from uploads) is used only when none are entered.
    """

    name = (fields.name or "").strip()
    label = name or DEFAULT_CHARACTER_LABEL

    exchanges: List[MessageExchange] = []
    for user_text, character_text in fields.message_examples:
        user_clean = (user_text or "").strip()
        character_clean = (character_text or "").strip()
        if not user_clean and not character_clean:
            continue
        exchanges.append(
            MessageExchange(
                user_text=user_clean,
                character_text=character_clean,
                character_label=label,
            )
        )

    knowledge_lines = [
        ensure_terminal_punctuation(line) for line in fields.knowledge if line and line.strip()
    ]

    clients: List[str] = []
    for client in fields.clients:
        cleaned = (client or "").strip()
        if cleaned and cleaned not in clients:
            clients.append(cleaned)

    adjectives: List[str] = []
    for entry in fields.adjectives:
        adjectives.extend(split_adjectives(entry))

    return CharacterDocument(
        name=name,
        clients=clients,
        model_provider=(fields.model_provider or "").strip(),
        settings=CharacterSettings(
            secrets={},
            voice=VoiceSettings(model=(fields.voice_model or "").strip()),
        ),
        plugins=[],
        bio=split_into_sentences(fields.bio),
        lore=split_into_sentences(fields.lore),
        knowledge=knowledge_lines or list(knowledge or []),
        message_examples=exchanges,
        post_examples=split_into_sentences(fields.post_examples),
        topics=split_into_sentences(fields.topics),
        style=CharacterStyle(
            all=split_into_sentences(fields.style_all),
            chat=split_into_sentences(fields.style_chat),
            post=split_into_sentences(fields.style_post),
        ),
        adjectives=adjectives,
        people=[person.strip() for person in fields.people if person and person.strip()],
    )


__all__ = ["CharacterFormData", "build_character_document"]
