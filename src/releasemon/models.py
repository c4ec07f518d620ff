"""Domain models used across the pipeline."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """One chat message as handed over by the message source."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    text: str = ""
    timestamp: str = Field(alias="timestampEpochSeconds")
    author_id: str = Field(default="", alias="authorId")
    author_name: str | None = Field(default=None, alias="authorName")
    thread_replies: list[Message] = Field(default_factory=list, alias="threadReplies")


class Release(BaseModel):
    """A shipped change extracted from a message.

    Field names on the wire are camelCase; model output is accepted loosely
    because element shape is a data-quality concern, not a parse failure.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    date: str = ""
    title: str = ""
    description: str = ""
    source_message_id: str = Field(default="", alias="sourceMessageId")
    why_this_matters: str | None = Field(default=None, alias="whyThisMatters")
    impact: str | None = None

    def to_wire(self) -> dict[str, object]:
        return self.model_dump(by_alias=True, exclude_none=True)


class PromptSpec(BaseModel):
    """Extraction instructions plus model parameters for one batch."""

    model_config = ConfigDict(frozen=True)

    prompt_text: str
    model: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    http_referer: str | None = None
    title: str | None = None


class ProcessedState(BaseModel):
    """On-disk shape of the dedup snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    processed_ids: list[str] = Field(default_factory=list, alias="processedIds")


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Completion(BaseModel):
    """Text and token accounting returned by one completion call."""

    text: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
