"""Flatten a message and its thread into the text block sent to the LLM."""

from __future__ import annotations

from datetime import UTC, datetime

from releasemon.models import Message

_UNKNOWN_DATE = "unknown-date"


def message_date(timestamp: str) -> str:
    """Return the UTC calendar date (``YYYY-MM-DD``) of an epoch-seconds string."""
    try:
        moment = datetime.fromtimestamp(float(timestamp), tz=UTC)
    except (TypeError, ValueError, OverflowError, OSError):
        return _UNKNOWN_DATE
    return moment.strftime("%Y-%m-%d")


def author_label(message: Message) -> str:
    """Display name for a reply author, or a short placeholder derived from ids."""
    if message.author_name:
        return message.author_name
    return f"user-{(message.author_id or message.id)[:8]}"


def normalize_message(message: Message) -> str:
    """Render *message* as the parent line followed by one line per thread reply.

    Replies keep the order the source delivered them in. Multi-line text is
    indented so every tagged line still starts a message.
    """
    lines = [f"[{message.id}] ({message_date(message.timestamp)}) {_indent(message.text)}"]
    for reply in message.thread_replies:
        lines.append(
            f"  ↳ [{reply.id}] ({message_date(reply.timestamp)}) "
            f"{author_label(reply)}: {_indent(reply.text)}"
        )
    return "\n".join(lines)


def _indent(text: str) -> str:
    return "\n    ".join(text.splitlines()) if text else text
