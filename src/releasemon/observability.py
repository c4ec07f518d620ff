"""Optional tracing hooks for LLM generations.

The extractor always talks to an :class:`Observer`; when tracing is off it
gets a :class:`NullObserver`. Observers only see telemetry and must not be
able to change what gets extracted.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from releasemon.models import TokenUsage

logger = logging.getLogger(__name__)


class Observer(Protocol):
    def trace_start(self, metadata: dict[str, Any]) -> None: ...

    def generation_start(
        self, model: str, model_parameters: dict[str, Any], input: list[dict[str, str]]
    ) -> None: ...

    def generation_end(
        self,
        output: str | None = None,
        usage: TokenUsage | None = None,
        level: str | None = None,
        status_message: str | None = None,
    ) -> None: ...

    def flush(self) -> None: ...


class NullObserver:
    """Tracing disabled."""

    def trace_start(self, metadata: dict[str, Any]) -> None:
        pass

    def generation_start(
        self, model: str, model_parameters: dict[str, Any], input: list[dict[str, str]]
    ) -> None:
        pass

    def generation_end(
        self,
        output: str | None = None,
        usage: TokenUsage | None = None,
        level: str | None = None,
        status_message: str | None = None,
    ) -> None:
        pass

    def flush(self) -> None:
        pass


class LoggingObserver:
    """Writes trace events to a dedicated logger, one line per event."""

    def __init__(self, name: str = "releasemon.trace") -> None:
        self._log = logging.getLogger(name)
        self._generations = 0

    def trace_start(self, metadata: dict[str, Any]) -> None:
        self._log.info("trace start %s", metadata)

    def generation_start(
        self, model: str, model_parameters: dict[str, Any], input: list[dict[str, str]]
    ) -> None:
        self._generations += 1
        chars = sum(len(m.get("content", "")) for m in input)
        self._log.info(
            "generation %d start model=%s params=%s input_chars=%d",
            self._generations,
            model,
            model_parameters,
            chars,
        )

    def generation_end(
        self,
        output: str | None = None,
        usage: TokenUsage | None = None,
        level: str | None = None,
        status_message: str | None = None,
    ) -> None:
        if level is not None:
            log_level = logging.ERROR if level == "ERROR" else logging.WARNING
            self._log.log(
                log_level, "generation %d %s: %s", self._generations, level, status_message
            )
            return
        self._log.info(
            "generation %d end output_chars=%d tokens=%s",
            self._generations,
            len(output or ""),
            usage.total_tokens if usage else "?",
        )

    def flush(self) -> None:
        self._log.info("trace flushed after %d generation(s)", self._generations)


def safe_emit(observer: Observer, event: str, **kwargs: Any) -> None:
    """Call ``observer.<event>(**kwargs)``; failures are logged, never raised."""
    try:
        getattr(observer, event)(**kwargs)
    except Exception:
        logger.exception("Observer failed during %s", event)
