"""File-backed record of message ids that already went through extraction."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterable, Sequence
from pathlib import Path

from pydantic import ValidationError

from releasemon.errors import ConfigurationError
from releasemon.models import Message, ProcessedState

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = ".release-monitor-state.json"


class ProcessedSetTracker:
    """Makes reruns idempotent. The only reader and writer of the snapshot.

    The snapshot is ``{"processedIds": [...]}``. It only grows, and is
    rewritten in full, atomically, each time ids are marked. Two processes
    sharing a snapshot race last-writer-wins.
    """

    def __init__(self, state_path: Path | str = DEFAULT_STATE_FILE) -> None:
        self._state_path = Path(state_path)
        self._processed: set[str] = set()

    # ── public ──────────────────────────────────────────────────────────

    @property
    def processed_ids(self) -> frozenset[str]:
        return frozenset(self._processed)

    def load(self) -> None:
        """Read the snapshot; a missing file means nothing was processed yet."""
        if not self._state_path.exists():
            logger.info("No state file at %s; starting fresh", self._state_path)
            self._processed = set()
            return

        try:
            raw = json.loads(self._state_path.read_text(encoding="utf-8"))
            state = ProcessedState.model_validate(raw)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ConfigurationError(
                f"State file {self._state_path} is not a valid processed-id snapshot: {exc}"
            ) from exc
        self._processed = set(state.processed_ids)
        logger.info("Loaded %d processed id(s) from %s", len(self._processed), self._state_path)

    def filter_unprocessed(self, messages: Sequence[Message]) -> list[Message]:
        """Return *messages* minus those already processed, keeping input order."""
        fresh = [m for m in messages if m.id not in self._processed]
        logger.info(
            "Dedupe: %d total → %d new (filtered %d seen)",
            len(messages),
            len(fresh),
            len(messages) - len(fresh),
        )
        return fresh

    def mark_processed(self, ids: Iterable[str]) -> None:
        """Add *ids* to the set and persist the whole set in one write."""
        before = len(self._processed)
        self._processed.update(ids)
        self._persist()
        logger.info(
            "Marked %d new id(s) processed (%d total)",
            len(self._processed) - before,
            len(self._processed),
        )

    # ── private ─────────────────────────────────────────────────────────

    def _persist(self) -> None:
        state = ProcessedState(processed_ids=sorted(self._processed))
        body = json.dumps(state.model_dump(by_alias=True), indent=2)

        directory = self._state_path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._state_path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(body)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._state_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
