"""Generate, refine and repair character documents through the LLM provider."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from flask import current_app

from api_handler import OpenRouterChatGenerator, UpstreamAPIError
from system_prompts import (
    build_generation_prompts,
    build_refinement_prompts,
    get_prompt_max_new_tokens,
)

from .character_schema import (
    REQUIRED_FIELDS,
    CharacterDocument,
    normalize_character,
    validate_required_fields,
)
from .errors import MissingCredentialError, MissingInputError, UpstreamGenerationError
from .json_repair import extract_json_object
from .reconcile import ReconcileMode, reconcile_character

GENERATION_PROMPT_KEY = "character_generation"
REFINEMENT_PROMPT_KEY = "character_refinement"

_GENERATION_PARAMETER_KEYS = {
    "max_new_tokens",
    "temperature",
    "top_p",
    "presence_penalty",
    "frequency_penalty",
}


@dataclass
class CharacterGenerationResult:
    character: CharacterDocument
    prompt: str
    raw_response: str


def fix_json(content: str) -> CharacterDocument:
    """Repair a hand-edited or truncated character file into a valid document."""

    text = content if isinstance(content, str) else ""
    if not text.strip():
        raise MissingInputError("Content is required")

    return _document_from_response(text)


def generate_character(prompt: str, model: str, api_key: str) -> CharacterGenerationResult:
    """Create a new character from a free-text description."""

    prompt_text, model_name, credential = _require_inputs(prompt, model, api_key)

    system_prompt, user_prompt = build_generation_prompts(prompt_text)
    raw_response = _complete(GENERATION_PROMPT_KEY, system_prompt, user_prompt, model_name, credential)

    generated = _document_from_response(raw_response)
    character = reconcile_character(generated, None, ReconcileMode.GENERATE)
    return CharacterGenerationResult(character=character, prompt=prompt_text, raw_response=raw_response)


def refine_character(
    prompt: str,
    model: str,
    api_key: str,
    current_character: Optional[object],
) -> CharacterGenerationResult:
    """Apply refinement ``prompt`` to ``current_character``.

    Fields the model leaves out fall back to the current character, and
    existing knowledge is never replaced.
    """

    if isinstance(current_character, CharacterDocument):
        previous = current_character
    elif isinstance(current_character, Mapping) and current_character:
        previous = normalize_character(current_character)
    else:
        raise MissingInputError("Prompt, model, and current character data are required")

    prompt_text, model_name, credential = _require_inputs(prompt, model, api_key)

    system_prompt, user_prompt = build_refinement_prompts(prompt_text, previous.to_dict())
    raw_response = _complete(REFINEMENT_PROMPT_KEY, system_prompt, user_prompt, model_name, credential)

    generated = _document_from_response(raw_response, prior=previous)
    character = reconcile_character(
        generated,
        previous,
        ReconcileMode.REFINE,
        instructions=prompt_text,
    )
    return CharacterGenerationResult(character=character, prompt=prompt_text, raw_response=raw_response)


def _require_inputs(prompt: object, model: object, api_key: object) -> Tuple[str, str, str]:
    prompt_text = prompt.strip() if isinstance(prompt, str) else ""
    model_name = model.strip() if isinstance(model, str) else ""
    credential = api_key.strip() if isinstance(api_key, str) else ""

    if not prompt_text:
        raise MissingInputError("Prompt is required")
    if not model_name:
        raise MissingInputError("Model is required")
    if not credential:
        raise MissingCredentialError("API key is required")
    return prompt_text, model_name, credential


def _document_from_response(
    raw_response: str,
    *,
    prior: Optional[CharacterDocument] = None,
) -> CharacterDocument:
    parsed = extract_json_object(raw_response)

    omitted = [name for name in REQUIRED_FIELDS if parsed.get(name) is None]
    if omitted:
        current_app.logger.warning(
            "Model output omitted character fields %s; filling defaults.",
            ", ".join(omitted),
        )

    document = normalize_character(parsed, prior_defaults=prior)
    validate_required_fields(document.to_dict())
    return document


def _get_generator(model: str, api_key: str) -> OpenRouterChatGenerator:
    config = current_app.config
    return OpenRouterChatGenerator(
        model,
        api_key,
        base_url=config["OPENROUTER_BASE_URL"],
        app_url=config["APP_URL"],
        app_title=config["APP_TITLE"],
    )


def _generation_parameters(prompt_key: str) -> Dict[str, Any]:
    """Merge configured sampling parameters with the prompt's token budget."""

    kwargs: Dict[str, Any] = {}
    max_new_tokens = get_prompt_max_new_tokens(prompt_key)
    if max_new_tokens is not None:
        kwargs["max_new_tokens"] = max_new_tokens

    parameters = current_app.config.get("GENERATION_PARAMETERS")
    if isinstance(parameters, dict):
        for key in _GENERATION_PARAMETER_KEYS:
            if key in parameters and parameters[key] is not None:
                kwargs[key] = parameters[key]
    return kwargs


def _complete(
    prompt_key: str,
    system_prompt: str,
    user_prompt: str,
    model: str,
    api_key: str,
) -> str:
    generator = _get_generator(model, api_key)
    current_app.logger.info("Requesting %s from model %s.", prompt_key, model)

    try:
        raw_response = generator.complete(
            system_prompt,
            user_prompt,
            **_generation_parameters(prompt_key),
        )
    except UpstreamAPIError as exc:
        raise UpstreamGenerationError(str(exc)) from exc

    current_app.logger.debug("Raw model response for %s: %s", prompt_key, raw_response)
    return raw_response


__all__ = [
    "CharacterGenerationResult",
    "fix_json",
    "generate_character",
    "refine_character",
]
