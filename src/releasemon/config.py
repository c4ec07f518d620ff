"""Centralised configuration loaded from environment variables and dotenv."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from releasemon.errors import ConfigurationError
from releasemon.llm import DEFAULT_BASE_URL, DEFAULT_MAX_TOKENS, DEFAULT_MODEL, CompletionConfig

load_dotenv()

# ── Completion endpoint ────────────────────────────────────────────────────
OPENROUTER_API_KEY: str = os.getenv("OPENROUTER_API_KEY", "")
OPENROUTER_BASE_URL: str = os.getenv("OPENROUTER_BASE_URL", DEFAULT_BASE_URL)
MODEL: str = os.getenv("RELEASEMON_MODEL", DEFAULT_MODEL)
MAX_TOKENS: int = int(os.getenv("RELEASEMON_MAX_TOKENS", str(DEFAULT_MAX_TOKENS)))
HTTP_REFERER: str = os.getenv(
    "RELEASEMON_HTTP_REFERER", "https://github.com/thormodsen/changelog-creator"
)
APP_TITLE: str = os.getenv("RELEASEMON_APP_TITLE", "Slack Release Monitor")
_timeout = os.getenv("RELEASEMON_TIMEOUT", "")
TIMEOUT: float | None = float(_timeout) if _timeout else None

# ── Prompt registry ────────────────────────────────────────────────────────
_prompts_dir = os.getenv("RELEASEMON_PROMPTS_DIR", "")
PROMPTS_DIR: Path | None = Path(_prompts_dir) if _prompts_dir else None
PROMPT_NAME: str = os.getenv("RELEASEMON_PROMPT_NAME", "release-extraction")
REQUIRE_PROMPT: bool = os.getenv("RELEASEMON_REQUIRE_PROMPT", "").lower() in ("1", "true", "yes")

# ── Local state ────────────────────────────────────────────────────────────
STATE_FILE: Path = Path(os.getenv("RELEASEMON_STATE_FILE", ".release-monitor-state.json"))
OUTPUT_FILE: Path = Path(os.getenv("RELEASEMON_OUTPUT", "releases.json"))


def completion_config() -> CompletionConfig:
    """Build the run's endpoint settings; fails if the API key is missing."""
    if not OPENROUTER_API_KEY:
        raise ConfigurationError(
            "Missing required environment variables:\n  - OPENROUTER_API_KEY\n\n"
            "Create a .env file or set these in your environment."
        )
    return CompletionConfig(
        api_key=OPENROUTER_API_KEY,
        base_url=OPENROUTER_BASE_URL,
        default_model=MODEL,
        default_max_tokens=MAX_TOKENS,
        http_referer=HTTP_REFERER or None,
        title=APP_TITLE or None,
        timeout=TIMEOUT,
    )
