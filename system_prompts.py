"""Central configuration for system prompts used by the character generator."""

from __future__ import annotations

import json

CHARACTER_JSON_TEMPLATE = {
    "bio": ["Multiple detailed sentences about background and personality"],
    "lore": ["Multiple sentences about history and world"],
    "topics": ["Multiple sentences about interests and knowledge"],
    "style": {
        "all": ["Multiple sentences about speaking style and mannerisms"],
        "chat": ["Multiple sentences about chat behavior"],
        "post": ["Multiple sentences about posting style"],
    },
    "adjectives": ["single", "word", "traits"],
    "messageExamples": [
        [
            {"user": "{{user1}}", "content": {"text": "User message"}},
            {"user": "character", "content": {"text": "Character response"}},
        ]
    ],
    "postExamples": ["Multiple example posts"],
}

_JSON_ONLY_RULES = (
    "CRITICAL RULES:\n"
    "1. ONLY output a JSON object\n"
    "2. Start with { and end with }\n"
    "3. NO text before or after the JSON\n"
    "4. NO apologies or explanations\n"
    "5. NO content warnings or disclaimers\n"
)

SYSTEM_PROMPTS = {
    "character_generation": {
        "max_new_tokens": 4000,
        "system": (
            "You are a character creation assistant that MUST ONLY output valid JSON. "
            "NEVER output apologies, explanations, or any other text.\n\n"
            + _JSON_ONLY_RULES
            + "6. If you have concerns, express them through the JSON content itself\n\n"
            "If you receive a prompt that concerns you, create an appropriate character that aligns "
            "with positive values while staying within the JSON format.\n\n"
            "Every sentence must end with a period. Adjectives must be single words."
        ),
        "user_template": (
            "Output ONLY this JSON structure with appropriate content. NO other text allowed:\n\n"
            "{structure}\n\n"
            "Character description: {prompt}"
        ),
    },
    "character_refinement": {
        "max_new_tokens": 4000,
        "system": (
            "You are a character refinement assistant that MUST ONLY output valid JSON. "
            "NEVER output apologies, explanations, or any other text.\n\n"
            + _JSON_ONLY_RULES
            + "6. Maintain the character's core traits while incorporating refinements\n"
            "7. Every sentence must end with a period\n"
            "8. Adjectives must be single words\n"
            "9. Keep every existing knowledge entry exactly as written\n\n"
            "You will receive the current character data and refinement instructions. "
            "Enhance and modify the character while maintaining consistency."
        ),
        "user_template": (
            "Current character data:\n"
            "{character}\n\n"
            "Refinement instructions: {prompt}\n\n"
            "Output the refined character data as a single JSON object with the same structure."
        ),
    },
}


def build_generation_prompts(prompt: str) -> tuple[str, str]:
    """Return the ``(system, user)`` prompt pair for a new character."""

    entry = SYSTEM_PROMPTS["character_generation"]
    user_prompt = entry["user_template"].format(
        structure=json.dumps(CHARACTER_JSON_TEMPLATE, indent=2),
        prompt=prompt,
    )
    return entry["system"], user_prompt


def build_refinement_prompts(prompt: str, current_character: dict) -> tuple[str, str]:
    """Return the ``(system, user)`` prompt pair for refining ``current_character``."""

    entry = SYSTEM_PROMPTS["character_refinement"]
    user_prompt = entry["user_template"].format(
        character=json.dumps(current_character, indent=2, ensure_ascii=False),
        prompt=prompt,
    )
    return entry["system"], user_prompt


def get_prompt_max_new_tokens(name: str, fallback: int | None = None) -> int | None:
    """Return the configured ``max_new_tokens`` for ``name`` if available."""

    entry = SYSTEM_PROMPTS.get(name)
    if not isinstance(entry, dict):
        return fallback

    raw_value = entry.get("max_new_tokens")
    if raw_value is None:
        return fallback

    try:
        tokens = int(raw_value)
    except (TypeError, ValueError):
        return fallback

    if tokens <= 0:
        return fallback

    return tokens
