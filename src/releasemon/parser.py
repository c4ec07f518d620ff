"""Turn raw model output into Release records.

Stages run in order, each only when the previous one failed:
fence stripping, direct ``json.loads``, repair then parse, and finally
classification of the failure as prose (:class:`FormatError`) or plain
garbage (:class:`ParseError`).
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from releasemon.errors import FormatError, ParseError
from releasemon.models import Release
from releasemon.repair import repair_json_text

logger = logging.getLogger(__name__)

_FENCE = "```"
_FENCE_OPEN = re.compile(r"^```[\w+-]*[ \t]*\n?")
_SUBHEADING = re.compile(r"^#{2,3} ", re.MULTILINE)
_JSON_START = ("[", "{")


def strip_code_fence(text: str) -> str:
    """Remove a leading ```` ```lang ```` line and its closing marker, if present."""
    stripped = text.strip()
    if not stripped.startswith(_FENCE):
        return stripped
    body = _FENCE_OPEN.sub("", stripped, count=1).rstrip()
    if body.endswith(_FENCE):
        body = body[: -len(_FENCE)]
    return body.strip()


def looks_like_markdown(text: str) -> bool:
    """True when *text* reads like a markdown document rather than JSON."""
    stripped = text.lstrip()
    if stripped.startswith(("#", _FENCE)):
        return True
    return _SUBHEADING.search(text) is not None


def parse_releases(raw_text: str) -> list[Release]:
    """Parse model output into releases, preserving the order the model used.

    Valid JSON that is not an array means "nothing found" and yields ``[]``.

    Raises:
        FormatError: output is unrecoverable and looks like markdown prose.
        ParseError: output is unrecoverable for any other reason.
    """
    text = strip_code_fence(raw_text)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        parsed = _parse_repaired(raw_text, text, exc)
    else:
        if not isinstance(parsed, list):
            logger.warning(
                "Model returned JSON %s instead of an array; treating as no releases",
                type(parsed).__name__,
            )
            return []

    return _to_releases(parsed)


def _parse_repaired(raw_text: str, text: str, error: json.JSONDecodeError) -> list[Any]:
    logger.warning("Malformed JSON from model (%s); attempting repair", error)
    logger.debug("Response text: %s", raw_text[:500])

    # Repair only fixes up structure the model started; it must not dig
    # fragments out of prose.
    repaired = repair_json_text(text) if text.startswith(_JSON_START) else None
    if repaired is not None:
        try:
            parsed = json.loads(repaired)
        except json.JSONDecodeError as exc:
            logger.debug("Repaired text still invalid: %s", exc)
        else:
            if isinstance(parsed, list) and _has_objects_or_empty(parsed):
                logger.info("Recovered %d element(s) from repaired JSON", len(parsed))
                return parsed
            logger.debug("Repaired JSON is not an array of objects: %.200r", parsed)

    if looks_like_markdown(raw_text):
        raise FormatError(raw_text)
    raise ParseError(raw_text, str(error))


def _to_releases(items: list[Any]) -> list[Release]:
    releases: list[Release] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Skipping non-object element %d in model output: %r", index, item)
            continue
        try:
            releases.append(Release.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed release element %d: %s", index, exc)
    return releases


def _has_objects_or_empty(items: list[Any]) -> bool:
    return not items or any(isinstance(item, dict) for item in items)
