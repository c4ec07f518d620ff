"""Error taxonomy for the extraction run.

Every error aborts the current batch. Nothing here is caught and downgraded
inside the core; the caller decides how to report it.
"""

from __future__ import annotations


class ReleaseMonitorError(Exception):
    """Base class for all release-monitor failures."""


class ConfigurationError(ReleaseMonitorError):
    """A required setting or prompt registry entry is missing or unusable."""


class TransportError(ReleaseMonitorError):
    """The completion endpoint answered with a non-success status."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"Completion endpoint returned {status}: {body[:500]}")


class ParseError(ReleaseMonitorError):
    """Model output could not be recovered as a JSON array."""

    def __init__(self, raw_text: str, detail: str = "") -> None:
        self.raw_text = raw_text
        message = "Model output was not recoverable JSON"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class FormatError(ReleaseMonitorError):
    """The model ignored the output-format instruction and returned prose."""

    def __init__(self, raw_text: str) -> None:
        self.raw_text = raw_text
        super().__init__(
            "Model returned markdown/prose instead of a JSON array. "
            "Tighten the extraction prompt so it demands a bare JSON array "
            f"with no headings or commentary. Output began with: {raw_text.strip()[:120]!r}"
        )
