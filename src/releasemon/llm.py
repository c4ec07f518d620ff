"""Minimal client for an OpenAI-compatible chat-completions endpoint."""

from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import BaseModel, ConfigDict

from releasemon.errors import TransportError
from releasemon.models import Completion, TokenUsage

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "anthropic/claude-sonnet-4"
DEFAULT_MAX_TOKENS = 4096


class CompletionConfig(BaseModel):
    """Endpoint settings fixed for the whole run."""

    model_config = ConfigDict(frozen=True)

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    default_model: str = DEFAULT_MODEL
    default_max_tokens: int = DEFAULT_MAX_TOKENS
    http_referer: str | None = None
    title: str | None = None
    timeout: float | None = None

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"


class CompletionClient:
    """Thin wrapper around ``POST /chat/completions``. One call, no retries."""

    def __init__(self, config: CompletionConfig, session: Any = None) -> None:
        self._config = config
        self._session = session if session is not None else requests.Session()

    def headers(self, http_referer: str | None = None, title: str | None = None) -> dict[str, str]:
        """Request headers; per-batch overrides win over run-level defaults."""
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }
        referer = http_referer or self._config.http_referer
        if referer:
            headers["HTTP-Referer"] = referer
        app_title = title or self._config.title
        if app_title:
            headers["X-Title"] = app_title
        return headers

    def complete(self, payload: dict[str, Any], headers: dict[str, str]) -> Completion:
        """Send *payload* and return the first choice's text with token usage.

        Raises :class:`TransportError` on any non-2xx status, and with status 0
        when the request never got an answer.
        """
        try:
            resp = self._session.post(
                self._config.completions_url,
                json=payload,
                headers=headers,
                timeout=self._config.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(0, str(exc)) from exc
        if not 200 <= resp.status_code < 300:
            raise TransportError(resp.status_code, resp.text)

        try:
            data = resp.json()
            text = _first_content(data)
            usage = TokenUsage.model_validate(data.get("usage") or {})
        except (ValueError, TypeError, AttributeError) as exc:
            logger.debug("Unreadable completion body: %s", exc)
            raise TransportError(resp.status_code, resp.text) from exc
        logger.debug(
            "Completion: %d prompt + %d completion tokens",
            usage.prompt_tokens,
            usage.completion_tokens,
        )
        return Completion(text=text, usage=usage)


def _first_content(data: Any) -> str:
    """Text of the first choice; ``""`` when the endpoint returned no choices."""
    if not isinstance(data, dict):
        raise TypeError(f"completion body is a {type(data).__name__}, not an object")
    choices = data.get("choices") or [{}]
    if not isinstance(choices, list) or not isinstance(choices[0], dict):
        raise TypeError("'choices' is not a list of objects")
    message = choices[0].get("message") or {}
    if not isinstance(message, dict):
        raise TypeError("'choices[0].message' is not an object")
    content = message.get("content") or ""
    if not isinstance(content, str):
        raise TypeError("'choices[0].message.content' is not a string")
    return content
