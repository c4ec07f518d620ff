"""Load a message export produced by the message source."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from releasemon.errors import ConfigurationError
from releasemon.models import Message

logger = logging.getLogger(__name__)

_MESSAGES = TypeAdapter(list[Message])


def load_messages(path: str | Path) -> list[Message]:
    """Read a JSON array of messages, oldest first, from *path*."""
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"Message file not found: {p}")
    try:
        messages = _MESSAGES.validate_python(json.loads(p.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigurationError(f"Message file {p} is not a valid message export: {exc}") from exc
    logger.info("Loaded %d message(s) from %s", len(messages), p)
    return messages
