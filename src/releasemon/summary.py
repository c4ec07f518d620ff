"""LLM-written digest of the releases logged over the last week."""

from __future__ import annotations

import logging
import re
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

from releasemon.llm import CompletionClient, CompletionConfig
from releasemon.models import Release
from releasemon.release_log import read_releases

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = """You are summarizing a week of software releases for a team digest.

Given the following releases, create a concise summary that includes:
1. Key Highlights: The most significant releases or changes (2-4 bullet points)
2. Common Themes: Patterns or areas of focus this week
3. Total Release Count: The number of releases

Keep the tone professional but readable. Use markdown formatting.

Only output the summary, nothing else."""

SUMMARY_MAX_TOKENS = 2048
EMPTY_SUMMARY = "# Weekly Summary\n\nNo releases found in the last 7 days."

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}$")


class WeeklySummarizer:
    """Reads the release log and writes ``weekly-summary-YYYY-MM-DD.md``."""

    def __init__(
        self,
        client: CompletionClient,
        config: CompletionConfig,
        releases_path: Path,
        output_dir: Path = Path("."),
        days: int = 7,
    ) -> None:
        self._client = client
        self._config = config
        self._releases_path = releases_path
        self._output_dir = output_dir
        self._days = days

    # ── public ──────────────────────────────────────────────────────────

    def recent_releases(self, today: date) -> list[Release]:
        """Releases dated within the window ending *today*, in log order."""
        cutoff = (today - timedelta(days=self._days)).isoformat()
        return [
            r
            for r in read_releases(self._releases_path)
            if _ISO_DATE.match(r.date) and r.date >= cutoff
        ]

    def generate(self, today: date | None = None) -> Path:
        """Write the digest and return its path. No releases means no LLM call."""
        today = today or datetime.now(UTC).date()
        out_path = self._output_dir / f"weekly-summary-{today.isoformat()}.md"
        releases = self.recent_releases(today)
        logger.info("Summarising %d release(s) since %d day(s) ago", len(releases), self._days)

        body = self._summarize(releases) if releases else EMPTY_SUMMARY
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(body, encoding="utf-8")
        logger.info("Weekly summary written to %s", out_path)
        return out_path

    # ── private ─────────────────────────────────────────────────────────

    def _summarize(self, releases: list[Release]) -> str:
        formatted = "\n\n".join(f"## {r.date} - {r.title}\n\n{r.description}" for r in releases)
        payload = {
            "model": self._config.default_model,
            "max_tokens": SUMMARY_MAX_TOKENS,
            "messages": [
                {
                    "role": "user",
                    "content": (
                        f"{SUMMARY_PROMPT}\n\nReleases from the last {self._days} days:\n\n{formatted}"
                    ),
                }
            ],
        }
        completion = self._client.complete(payload, self._client.headers())
        if not completion.text.strip():
            logger.warning("Empty summary from model; writing placeholder")
            return EMPTY_SUMMARY
        return f"# Weekly Summary\n\n{completion.text}"
