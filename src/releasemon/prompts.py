"""Resolve extraction instructions and model parameters from a prompt registry."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

import yaml
from pydantic import ValidationError

from releasemon.errors import ConfigurationError
from releasemon.models import PromptSpec

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = """You are analyzing Slack messages to extract release information.

Identify any messages that mention:
- Software releases or version updates
- Deployments to production or staging
- Shipped features or functionality
- Hotfixes or bug fixes that were deployed

Thread replies are included beneath their parent message; use them for context
but attribute the release to the parent message id.

For each release found, extract:
- date: The date in YYYY-MM-DD format (derive from message timestamp or mentioned date)
- title: A brief title for the release
- description: A summary of what was released/changed
- sourceMessageId: The ID of the message containing this release
- whyThisMatters: One sentence on why users or the team should care (optional)
- impact: Who or what is affected (optional)

Respond with a JSON array. If no releases are found, respond with an empty array [].

Example output:
[{"date":"2024-01-15","title":"v2.1.0 Release","description":"Added user authentication and fixed login bug","sourceMessageId":"1705312800.000100"}]

Only output valid JSON, nothing else. Do not use markdown.

Message to analyze:

"""

# Registry config key → PromptSpec field.
_CONFIG_KEYS: dict[str, str] = {
    "model": "model",
    "max_tokens": "max_tokens",
    "temperature": "temperature",
    "top_p": "top_p",
    "http_referer": "http_referer",
    "x_title": "title",
}


class PromptRegistry(Protocol):
    """Anything that can look up a named prompt and its model config."""

    def get_prompt_with_config(self, name: str) -> dict[str, Any] | None:
        """Return ``{"prompt": str, "config": dict}`` or ``None`` if unknown."""
        ...


class YamlPromptRegistry:
    """Prompt registry backed by ``<name>.yml`` files in a directory.

    Each file holds a ``prompt`` string and an optional ``config`` mapping, so
    operators can edit extraction instructions without touching code.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    def get_prompt_with_config(self, name: str) -> dict[str, Any] | None:
        path = self._find(name)
        if path is None:
            logger.debug("No prompt file for '%s' in %s", name, self._directory)
            return None

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Prompt file {path} is not valid YAML: {exc}") from exc

        if not isinstance(data, dict) or not isinstance(data.get("prompt"), str):
            raise ConfigurationError(f"Prompt file {path} must define a 'prompt' string.")

        config = data.get("config") or {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Prompt file {path}: 'config' must be a mapping.")

        return {"prompt": data["prompt"], "config": config}

    def _find(self, name: str) -> Path | None:
        for suffix in (".yml", ".yaml"):
            candidate = self._directory / f"{name}{suffix}"
            if candidate.is_file():
                return candidate
        return None


def spec_from_registry_entry(entry: dict[str, Any]) -> PromptSpec:
    """Build a :class:`PromptSpec` from a registry entry, ignoring unknown keys."""
    fields: dict[str, Any] = {"prompt_text": entry["prompt"]}
    for key, value in (entry.get("config") or {}).items():
        field = _CONFIG_KEYS.get(key)
        if field is None:
            logger.debug("Ignoring unrecognised prompt config key '%s'", key)
            continue
        fields[field] = value
    try:
        return PromptSpec(**fields)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid prompt config: {exc}") from exc


class PromptResolver:
    """Picks the prompt for a run: registry entry or the built-in default.

    ``required`` is decided once per run. When it is set, a missing entry is
    fatal rather than silently replaced by :data:`DEFAULT_PROMPT`.
    """

    def __init__(
        self,
        registry: PromptRegistry | None = None,
        required: bool = False,
        default: PromptSpec | None = None,
    ) -> None:
        if required and registry is None:
            raise ConfigurationError("A prompt registry is required but none is configured.")
        self._registry = registry
        self._required = required
        self._default = default or PromptSpec(prompt_text=DEFAULT_PROMPT)

    def resolve(self, task_name: str) -> PromptSpec:
        if self._registry is None:
            logger.info("No prompt registry configured; using built-in prompt.")
            return self._default

        entry = self._registry.get_prompt_with_config(task_name)
        if entry is None:
            if self._required:
                raise ConfigurationError(
                    f"Prompt '{task_name}' not found in the prompt registry and a "
                    "registry prompt is required for this run."
                )
            logger.warning("Prompt '%s' not in registry; using built-in prompt.", task_name)
            return self._default

        spec = spec_from_registry_entry(entry)
        logger.info("Resolved prompt '%s' from registry (model=%s)", task_name, spec.model)
        return spec
