"""Canonical character document schema and the normaliser that fills it."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import InvalidCharacterDataError
from .sentences import (
    ensure_terminal_punctuation,
    normalize_sentence_entry,
    split_into_sentences,
)

USER_PLACEHOLDER = "{{user1}}"
DEFAULT_CHARACTER_LABEL = "character"

REQUIRED_FIELDS = (
    "bio",
    "lore",
    "topics",
    "style",
    "adjectives",
    "messageExamples",
    "postExamples",
)

_ADJECTIVE_STRIP = ".,;:!?\"'()[]{}"
_LINE_BREAK = re.compile(r"[\r\n]+")


@dataclass
class VoiceSettings:
    model: str = ""


@dataclass
class CharacterSettings:
    secrets: Dict[str, Any] = field(default_factory=dict)
    voice: VoiceSettings = field(default_factory=VoiceSettings)

    def is_empty(self) -> bool:
        return not self.secrets and not self.voice.model

    def to_dict(self) -> Dict[str, Any]:
        return {"secrets": dict(self.secrets), "voice": {"model": self.voice.model}}


@dataclass
class CharacterStyle:
    all: List[str] = field(default_factory=list)
    chat: List[str] = field(default_factory=list)
    post: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[str]]:
        return {"all": list(self.all), "chat": list(self.chat), "post": list(self.post)}


@dataclass
class MessageExchange:
    """One user/character turn pair from ``messageExamples``."""

    user_text: str = ""
    character_text: str = ""
    character_label: str = DEFAULT_CHARACTER_LABEL

    def to_list(self) -> List[Dict[str, Any]]:
        return [
            {"user": USER_PLACEHOLDER, "content": {"text": self.user_text}},
            {"user": self.character_label, "content": {"text": self.character_text}},
        ]


@dataclass
class CharacterDocument:
    name: str = ""
    clients: List[str] = field(default_factory=list)
    model_provider: str = ""
    settings: CharacterSettings = field(default_factory=CharacterSettings)
    plugins: List[str] = field(default_factory=list)
    bio: List[str] = field(default_factory=list)
    lore: List[str] = field(default_factory=list)
    knowledge: List[str] = field(default_factory=list)
    message_examples: List[MessageExchange] = field(default_factory=list)
    post_examples: List[str] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)
    style: CharacterStyle = field(default_factory=CharacterStyle)
    adjectives: List[str] = field(default_factory=list)
    people: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise using the camelCase keys of the character file format."""

        return {
            "name": self.name,
            "clients": list(self.clients),
            "modelProvider": self.model_provider,
            "settings": self.settings.to_dict(),
            "plugins": list(self.plugins),
            "bio": list(self.bio),
            "lore": list(self.lore),
            "knowledge": list(self.knowledge),
            "messageExamples": [exchange.to_list() for exchange in self.message_examples],
            "postExamples": list(self.post_examples),
            "topics": list(self.topics),
            "style": self.style.to_dict(),
            "adjectives": list(self.adjectives),
            "people": list(self.people),
        }


def normalize_character(
    candidate: object,
    prior_defaults: Optional[object] = None,
) -> CharacterDocument:
    """Coerce a parsed (possibly partial) object into a :class:`CharacterDocument`.

    Fields that are missing or ``null`` in ``candidate`` are taken from
    ``prior_defaults`` (a mapping or document) when supplied, and otherwise
    fall back to empty values. This function never raises.
    """

    source: Mapping[str, Any] = candidate if isinstance(candidate, Mapping) else {}
    if isinstance(prior_defaults, CharacterDocument):
        prior: Mapping[str, Any] = prior_defaults.to_dict()
    elif isinstance(prior_defaults, Mapping):
        prior = prior_defaults
    else:
        prior = {}

    def pick(key: str) -> Any:
        value = source.get(key)
        if value is None:
            value = prior.get(key)
        return value

    name = _clean_text(pick("name"))
    return CharacterDocument(
        name=name,
        clients=_unique_strings(pick("clients")),
        model_provider=_clean_text(pick("modelProvider")),
        settings=_normalize_settings(pick("settings")),
        plugins=_string_list(pick("plugins")),
        bio=_sentence_list(pick("bio")),
        lore=_sentence_list(pick("lore")),
        knowledge=_knowledge_list(pick("knowledge")),
        message_examples=_normalize_message_examples(pick("messageExamples"), name),
        post_examples=_sentence_list(pick("postExamples")),
        topics=_sentence_list(pick("topics")),
        style=_normalize_style(pick("style")),
        adjectives=_adjective_list(pick("adjectives")),
        people=_string_list(pick("people")),
    )


def validate_required_fields(document: Mapping[str, Any]) -> None:
    """Raise :class:`InvalidCharacterDataError` if a required field is absent."""

    missing = [name for name in REQUIRED_FIELDS if document.get(name) is None]
    if missing:
        raise InvalidCharacterDataError(missing)


def _clean_text(value: object) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()


def _string_list(value: object) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [entry.strip() for entry in value if isinstance(entry, str) and entry.strip()]


def _unique_strings(value: object) -> List[str]:
    seen: set[str] = set()
    result: List[str] = []
    for entry in _string_list(value):
        if entry not in seen:
            seen.add(entry)
            result.append(entry)
    return result


def _sentence_list(value: object) -> List[str]:
    if isinstance(value, str):
        return split_into_sentences(value)
    if not isinstance(value, (list, tuple)):
        return []
    sentences = (normalize_sentence_entry(entry) for entry in value)
    return [sentence for sentence in sentences if sentence]


def _knowledge_list(value: object) -> List[str]:
    if isinstance(value, str):
        value = _LINE_BREAK.split(value)
    if not isinstance(value, (list, tuple)):
        return []
    lines = (ensure_terminal_punctuation(entry) for entry in value if isinstance(entry, str))
    return [line for line in lines if line]


def _adjective_list(value: object) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []

    adjectives: List[str] = []
    for entry in value:
        if not isinstance(entry, str):
            continue
        for word in entry.split():
            cleaned = word.strip(_ADJECTIVE_STRIP).lower()
            if cleaned:
                adjectives.append(cleaned)
    return adjectives


def _normalize_settings(value: object) -> CharacterSettings:
    if not isinstance(value, Mapping):
        return CharacterSettings()

    secrets = value.get("secrets")
    voice = value.get("voice")
    voice_model = voice.get("model") if isinstance(voice, Mapping) else None
    return CharacterSettings(
        secrets=dict(secrets) if isinstance(secrets, Mapping) else {},
        voice=VoiceSettings(model=_clean_text(voice_model)),
    )


def _normalize_style(value: object) -> CharacterStyle:
    if isinstance(value, (str, list, tuple)):
        return CharacterStyle(all=_sentence_list(value))
    if not isinstance(value, Mapping):
        return CharacterStyle()
    return CharacterStyle(
        all=_sentence_list(value.get("all")),
        chat=_sentence_list(value.get("chat")),
        post=_sentence_list(value.get("post")),
    )


def _turn_text(turn: object) -> str:
    if isinstance(turn, str):
        return turn.strip()
    if not isinstance(turn, Mapping):
        return ""
    content = turn.get("content")
    if isinstance(content, Mapping):
        content = content.get("text")
    elif content is None:
        content = turn.get("text")
    return content.strip() if isinstance(content, str) else ""


def _normalize_message_examples(value: object, name: str) -> List[MessageExchange]:
    if not isinstance(value, (list, tuple)):
        return []

    label = name or DEFAULT_CHARACTER_LABEL
    exchanges: List[MessageExchange] = []
    for example in value:
        if not isinstance(example, (list, tuple)) or not example:
            continue
        turns: Sequence[object] = example[:2]
        user_text = _turn_text(turns[0])
        character_text = _turn_text(turns[1]) if len(turns) > 1 else ""
        if not user_text and not character_text:
            continue
        exchanges.append(
            MessageExchange(
                user_text=user_text,
                character_text=character_text,
                character_label=label,
            )
        )
    return exchanges


__all__ = [
    "CharacterDocument",
    "CharacterSettings",
    "CharacterStyle",
    "DEFAULT_CHARACTER_LABEL",
    "MessageExchange",
    "REQUIRED_FIELDS",
    "USER_PLACEHOLDER",
    "VoiceSettings",
    "normalize_character",
    "validate_required_fields",
]
