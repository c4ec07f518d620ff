"""JSON file of every release extracted so far, oldest run first."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from releasemon.errors import ConfigurationError
from releasemon.models import Release

logger = logging.getLogger(__name__)

_RELEASES = TypeAdapter(list[Release])


def read_releases(path: Path) -> list[Release]:
    if not path.exists():
        return []
    try:
        return _RELEASES.validate_python(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigurationError(f"Release log {path} is not a JSON array of releases: {exc}") from exc


def append_releases(path: Path, releases: list[Release]) -> int:
    """Append *releases* after those already in *path*; return the new total."""
    combined = read_releases(path) + releases
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps([r.to_wire() for r in combined], indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    logger.info("Wrote %d release(s) to %s (%d new)", len(combined), path, len(releases))
    return len(combined)
