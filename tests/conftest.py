"""Shared fakes: a stand-in for ``requests.Session`` and message factories."""

from __future__ import annotations

import json
from typing import Any, Callable

import pytest

from releasemon.llm import CompletionClient, CompletionConfig
from releasemon.models import Message


class FakeResponse:
    def __init__(self, status_code: int, body: Any) -> None:
        self.status_code = status_code
        self._body = body

    @property
    def text(self) -> str:
        return self._body if isinstance(self._body, str) else json.dumps(self._body)

    def json(self) -> Any:
        if isinstance(self._body, str):
            return json.loads(self._body)
        return self._body


class FakeSession:
    """Replays queued responses and records every POST."""

    def __init__(self, responses: list[FakeResponse]) -> None:
        self._responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def post(self, url: str, json: Any = None, headers: Any = None, timeout: Any = None) -> FakeResponse:
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self._responses.pop(0)


def ok(content: str, total_tokens: int = 15) -> FakeResponse:
    return FakeResponse(
        200,
        {
            "choices": [{"message": {"content": content}}],
            "usage": {"prompt_tokens": 10, "completion_tokens": total_tokens - 10, "total_tokens": total_tokens},
        },
    )


def release_json(message_id: str, title: str = "v1.0.0") -> str:
    return json.dumps(
        [{"date": "2024-01-15", "title": title, "description": "Shipped", "sourceMessageId": message_id}]
    )


@pytest.fixture
def completion_config() -> CompletionConfig:
    return CompletionConfig(api_key="test-key", base_url="https://llm.test/api/v1")


@pytest.fixture
def fake_client(completion_config: CompletionConfig) -> Callable[..., tuple[CompletionClient, FakeSession]]:
    def _build(*responses: FakeResponse) -> tuple[CompletionClient, FakeSession]:
        session = FakeSession(list(responses))
        return CompletionClient(completion_config, session=session), session

    return _build


def make_message(
    message_id: str,
    text: str = "Deployed v1.0.0 to production",
    timestamp: str = "1705312800.000100",
    replies: list[Message] | None = None,
    **kwargs: Any,
) -> Message:
    return Message(id=message_id, text=text, timestamp=timestamp, thread_replies=replies or [], **kwargs)
