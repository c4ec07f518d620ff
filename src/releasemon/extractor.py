"""Per-message release extraction loop."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from releasemon.errors import FormatError, ParseError, TransportError
from releasemon.llm import CompletionClient, CompletionConfig
from releasemon.models import Message, PromptSpec, Release
from releasemon.normalize import normalize_message
from releasemon.observability import NullObserver, Observer, safe_emit
from releasemon.parser import parse_releases
from releasemon.prompts import PromptResolver

logger = logging.getLogger(__name__)

DEFAULT_TASK = "release-extraction"

# (releases so far, current message, index, batch size)
ProgressCallback = Callable[[list[Release], Message, int, int], None]


def build_payload(
    prompt: PromptSpec, config: CompletionConfig, normalized: str
) -> dict[str, Any]:
    """Request body for one message: prompt text followed by the normalized thread."""
    payload: dict[str, Any] = {
        "model": prompt.model or config.default_model,
        "max_tokens": prompt.max_tokens or config.default_max_tokens,
        "messages": [
            {"role": "user", "content": f"{prompt.prompt_text.rstrip()}\n\n{normalized}"}
        ],
    }
    if prompt.temperature is not None:
        payload["temperature"] = prompt.temperature
    if prompt.top_p is not None:
        payload["top_p"] = prompt.top_p
    return payload


class ReleaseExtractor:
    """Sends each message to the LLM in turn and collects the parsed releases.

    Exactly one request is in flight at a time and results keep message
    order. Any failure aborts the whole batch: nothing collected so far is
    returned, so the caller never marks a partial batch as processed.
    """

    def __init__(
        self,
        client: CompletionClient,
        config: CompletionConfig,
        resolver: PromptResolver,
        task_name: str = DEFAULT_TASK,
        observer: Observer | None = None,
    ) -> None:
        self._client = client
        self._config = config
        self._resolver = resolver
        self._task_name = task_name
        self._observer: Observer = observer if observer is not None else NullObserver()

    # ── public ──────────────────────────────────────────────────────────

    def extract(
        self,
        messages: Sequence[Message],
        on_progress: ProgressCallback | None = None,
    ) -> list[Release]:
        """Extract releases from *messages*, in order.

        Raises ConfigurationError before any request when the prompt cannot
        be resolved; TransportError, ParseError and FormatError abort the
        batch at the failing message.
        """
        if not messages:
            return []

        prompt = self._resolver.resolve(self._task_name)
        headers = self._client.headers(prompt.http_referer, prompt.title)
        model = prompt.model or self._config.default_model
        total = len(messages)

        safe_emit(
            self._observer,
            "trace_start",
            metadata={"messageCount": total, "model": model},
        )

        releases: list[Release] = []
        try:
            for index, message in enumerate(messages):
                found = self._extract_one(message, prompt, headers)
                self._flag_foreign_sources(found, message)
                releases.extend(found)
                logger.info(
                    "Message %d/%d [%s]: %d release(s)", index + 1, total, message.id, len(found)
                )
                if on_progress is not None:
                    on_progress(list(releases), message, index, total)
        finally:
            safe_emit(self._observer, "flush")

        logger.info("Extracted %d release(s) from %d message(s)", len(releases), total)
        return releases

    # ── private ─────────────────────────────────────────────────────────

    def _extract_one(
        self, message: Message, prompt: PromptSpec, headers: dict[str, str]
    ) -> list[Release]:
        payload = build_payload(prompt, self._config, normalize_message(message))
        params = {k: payload[k] for k in ("max_tokens", "temperature", "top_p") if k in payload}
        safe_emit(
            self._observer,
            "generation_start",
            model=payload["model"],
            model_parameters=params,
            input=payload["messages"],
        )

        try:
            completion = self._client.complete(payload, headers)
        except TransportError as exc:
            safe_emit(self._observer, "generation_end", level="ERROR", status_message=str(exc))
            raise

        try:
            found = parse_releases(completion.text)
        except (ParseError, FormatError) as exc:
            safe_emit(
                self._observer,
                "generation_end",
                output=completion.text,
                usage=completion.usage,
                level="WARNING",
                status_message=str(exc),
            )
            raise

        safe_emit(
            self._observer,
            "generation_end",
            output=completion.text,
            usage=completion.usage,
        )
        return found

    @staticmethod
    def _flag_foreign_sources(found: list[Release], message: Message) -> None:
        known = {message.id, *(r.id for r in message.thread_replies)}
        for release in found:
            if release.source_message_id not in known:
                logger.warning(
                    "Release %r cites message %r, not %s or its replies",
                    release.title,
                    release.source_message_id,
                    message.id,
                )
