"""Best-effort repair of near-valid JSON produced by an LLM.

Kept as a pure text-to-text step so it can be checked against a corpus of
known-bad model outputs independently of the parser.
"""

from __future__ import annotations

import logging

from json_repair import repair_json

logger = logging.getLogger(__name__)


def repair_json_text(text: str) -> str | None:
    """Return a repaired JSON document for *text*, or ``None`` if nothing usable remains.

    Handles unbalanced brackets and quotes, trailing commas and strings cut off
    mid-value. The result is JSON text; callers still parse it themselves.
    """
    if not text.strip():
        return None

    try:
        repaired = repair_json(text, skip_json_loads=True)
    except (ValueError, RecursionError) as exc:
        logger.debug("json_repair gave up: %s", exc)
        return None

    if not isinstance(repaired, str):
        return None
    repaired = repaired.strip()
    if repaired in ("", '""'):
        return None
    return repaired
