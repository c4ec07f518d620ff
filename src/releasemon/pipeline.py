"""Pipeline orchestration: load state → dedupe → extract → write releases → mark processed."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from releasemon import config
from releasemon.extractor import ReleaseExtractor
from releasemon.llm import CompletionClient, CompletionConfig
from releasemon.models import Message, Release
from releasemon.observability import LoggingObserver, NullObserver, Observer
from releasemon.prompts import PromptResolver, YamlPromptRegistry
from releasemon.release_log import append_releases
from releasemon.store import ProcessedSetTracker
from releasemon.summary import WeeklySummarizer

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_resolver(prompts_dir: Path | None, required: bool) -> PromptResolver:
    """Choose, once per run, between the file registry and the built-in prompt."""
    registry = YamlPromptRegistry(prompts_dir) if prompts_dir is not None else None
    return PromptResolver(registry=registry, required=required)


def run_extraction(
    messages: list[Message],
    tracker: ProcessedSetTracker,
    extractor: ReleaseExtractor,
    output_path: Path,
) -> list[Release]:
    """Extract releases from the unseen part of *messages* and commit the batch.

    The batch is all-or-nothing: if extraction raises, no releases are
    written and no ids are marked, so a rerun retries the same messages.
    """
    tracker.load()
    fresh = tracker.filter_unprocessed(messages)
    if not fresh:
        logger.info("No new messages to process.")
        return []

    def _progress(so_far: list[Release], message: Message, index: int, total: int) -> None:
        logger.debug(
            "Progress %d/%d (%s): %d release(s) so far", index + 1, total, message.id, len(so_far)
        )

    releases = extractor.extract(fresh, on_progress=_progress)

    if releases:
        append_releases(output_path, releases)
    tracker.mark_processed(m.id for m in fresh)
    return releases


def run_pipeline(
    messages: list[Message],
    *,
    state_path: Path | None = None,
    output_path: Path | None = None,
    require_prompt: bool | None = None,
    trace: bool = False,
    completion: CompletionConfig | None = None,
) -> list[Release]:
    """Wire configuration into the extraction run and execute it."""
    logger.info("=== release extraction start [%d message(s)] ===", len(messages))

    completion = completion or config.completion_config()
    resolver = build_resolver(
        config.PROMPTS_DIR,
        config.REQUIRE_PROMPT if require_prompt is None else require_prompt,
    )
    observer: Observer = LoggingObserver() if trace else NullObserver()
    extractor = ReleaseExtractor(
        client=CompletionClient(completion),
        config=completion,
        resolver=resolver,
        task_name=config.PROMPT_NAME,
        observer=observer,
    )
    tracker = ProcessedSetTracker(state_path or config.STATE_FILE)

    releases = run_extraction(messages, tracker, extractor, output_path or config.OUTPUT_FILE)
    logger.info("=== release extraction done: %d new release(s) ===", len(releases))
    return releases


def run_weekly_summary(
    *,
    releases_path: Path | None = None,
    output_dir: Path | None = None,
    days: int = 7,
    completion: CompletionConfig | None = None,
) -> Path:
    """Summarise the last *days* of the release log into a markdown digest."""
    completion = completion or config.completion_config()
    summarizer = WeeklySummarizer(
        client=CompletionClient(completion),
        config=completion,
        releases_path=releases_path or config.OUTPUT_FILE,
        output_dir=output_dir or Path("."),
        days=days,
    )
    return summarizer.generate()
