# api_handler.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

import openai

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


class UpstreamAPIError(RuntimeError):
    """Raised when the provider rejects a request or answers without text."""


class OpenRouterChatGenerator:
    """
    Thin wrapper around an OpenAI-compatible Chat Completions endpoint.

    OpenRouter speaks the OpenAI wire format, so the official SDK is pointed
    at its base URL with the attribution headers OpenRouter expects
    (``HTTP-Referer`` and ``X-Title``). Each call is a single synchronous
    request; there is no retry.

    Compatible with OpenAI Python SDK >= 1.0.
    """

    def __init__(
        self,
        model_name: str,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        app_url: str = "http://localhost:4000",
        app_title: str = "Eliza Character Generator",
        default_max_tokens: int = 4000,
    ) -> None:
        self.model_name = (model_name or "").strip()
        self.api_key = (api_key or "").strip()
        self.default_max_tokens = int(default_max_tokens or 4000)
        self._client = openai.OpenAI(
            api_key=self.api_key,
            base_url=base_url,
            default_headers={"HTTP-Referer": app_url, "X-Title": app_title},
            max_retries=0,
        )

    # ---------------- public API ----------------
    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_new_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        presence_penalty: Optional[float] = None,
        frequency_penalty: Optional[float] = None,
    ) -> str:
        if not isinstance(user_prompt, str) or not user_prompt.strip():
            raise ValueError("user_prompt must be a non-empty string.")
        max_tokens = int(max_new_tokens if max_new_tokens is not None else self.default_max_tokens)
        if max_tokens <= 0:
            raise ValueError("max_new_tokens must be positive.")

        kwargs: Dict[str, Any] = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": max_tokens,
        }
        for key, value in (
            ("temperature", temperature),
            ("top_p", top_p),
            ("presence_penalty", presence_penalty),
            ("frequency_penalty", frequency_penalty),
        ):
            if value is not None:
                kwargs[key] = float(value)

        try:
            resp = self._client.chat.completions.create(**kwargs)
        except openai.APIStatusError as exc:
            raise UpstreamAPIError(self._status_error_message(exc)) from exc
        except openai.APIError as exc:
            raise UpstreamAPIError(str(exc) or "Failed to reach the generation provider") from exc

        text = self._extract_text_from_chat(resp).strip()
        if text:
            return text
        snippet = self._shorten_debug(str(resp))
        raise UpstreamAPIError(f"Chat completion returned no text. Raw response (truncated): {snippet}")

    # ---------------- extractors ----------------
    @staticmethod
    def _status_error_message(exc: "openai.APIStatusError") -> str:
        body = getattr(exc, "body", None)
        if isinstance(body, dict):
            error = body.get("error", body)
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return getattr(exc, "message", None) or f"Provider returned HTTP {exc.status_code}"

    def _extract_text_from_chat(self, resp: Any) -> str:
        choices = getattr(resp, "choices", []) or []
        if not choices:
            return ""
        first = choices[0]
        msg = getattr(first, "message", None)
        if isinstance(msg, dict):
            content = msg.get("content")
        else:
            content = getattr(msg, "content", None)
        if isinstance(content, list):
            parts: List[str] = []
            for p in content:
                if isinstance(p, dict) and p.get("type") == "text":
                    parts.append(str(p.get("text") or ""))
            return "\n".join([p for p in parts if p])
        return str(content or getattr(first, "text", "") or "")

    @staticmethod
    def _shorten_debug(s: str, limit: int = 1200) -> str:
        s = s.replace("\n", " ")
        return (s[:limit] + "…") if len(s) > limit else s
