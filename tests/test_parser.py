"""Unit tests for the staged response parser."""

import pytest

from releasemon.errors import FormatError, ParseError
from releasemon.parser import looks_like_markdown, parse_releases, strip_code_fence

_ONE = '[{"date":"2024-01-15","title":"v2.1.0","description":"...","sourceMessageId":"m1"}]'


class TestStripCodeFence:
    def test_json_fence(self) -> None:
        assert strip_code_fence(f"```json\n{_ONE}\n```") == _ONE

    def test_bare_fence(self) -> None:
        assert strip_code_fence(f"```\n{_ONE}\n```\n") == _ONE

    def test_no_fence_only_trims(self) -> None:
        assert strip_code_fence(f"  {_ONE}\n") == _ONE

    def test_unclosed_fence(self) -> None:
        assert strip_code_fence(f"```json\n{_ONE}") == _ONE


class TestParseReleases:
    def test_well_formed_array(self) -> None:
        releases = parse_releases(_ONE)
        assert len(releases) == 1
        r = releases[0]
        assert r.date == "2024-01-15"
        assert r.title == "v2.1.0"
        assert r.description == "..."
        assert r.source_message_id == "m1"
        assert r.to_wire() == {
            "date": "2024-01-15",
            "title": "v2.1.0",
            "description": "...",
            "sourceMessageId": "m1",
        }

    def test_fenced_equals_unfenced(self) -> None:
        assert parse_releases(f"```json\n{_ONE}\n```") == parse_releases(_ONE)

    def test_non_array_json_is_empty(self) -> None:
        assert parse_releases('{"not":"an array"}') == []

    def test_empty_array(self) -> None:
        assert parse_releases("[]") == []

    def test_truncated_array_is_repaired(self) -> None:
        truncated = '[{"date":"2024-01-15","title":"t","description":"d","sourceMessageId":"m1"}'
        releases = parse_releases(truncated)
        assert [(r.title, r.source_message_id) for r in releases] == [("t", "m1")]

    def test_preserves_model_order(self) -> None:
        text = '[{"title":"b","sourceMessageId":"m1"},{"title":"a","sourceMessageId":"m1"}]'
        assert [r.title for r in parse_releases(text)] == ["b", "a"]

    def test_optional_fields(self) -> None:
        text = (
            '[{"date":"2024-01-15","title":"t","description":"d","sourceMessageId":"m1",'
            '"whyThisMatters":"faster logins","impact":"all users"}]'
        )
        r = parse_releases(text)[0]
        assert r.why_this_matters == "faster logins"
        assert r.impact == "all users"

    def test_non_object_elements_are_skipped(self) -> None:
        releases = parse_releases('[1, "two", {"title": "three"}]')
        assert [r.title for r in releases] == ["three"]

    def test_markdown_heading_is_format_error(self) -> None:
        with pytest.raises(FormatError) as exc_info:
            parse_releases("# Summary\n\nThe team shipped version two this week.")
        assert "prompt" in str(exc_info.value)

    def test_plain_text_is_parse_error(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_releases("not json at all")
        assert not isinstance(exc_info.value, FormatError)
        assert exc_info.value.raw_text == "not json at all"

    def test_prose_with_brackets_is_format_error(self) -> None:
        with pytest.raises(FormatError):
            parse_releases("# Summary\n\nWe shipped [v2.1.0] today.")

    def test_heading_with_braces_is_format_error(self) -> None:
        with pytest.raises(FormatError):
            parse_releases("Here are the releases:\n\n## v2.1.0\nAdded {auth} support")

    def test_plain_prose_with_braces_is_parse_error(self) -> None:
        with pytest.raises(ParseError):
            parse_releases("Nothing shipped, see {release notes} later.")


class TestLooksLikeMarkdown:
    @pytest.mark.parametrize(
        "text",
        ["# Summary", "  ```\nhello\n```", "Here you go:\n\n## Releases\nnone", "intro\n### Notes"],
    )
    def test_markdown(self, text: str) -> None:
        assert looks_like_markdown(text)

    def test_plain_prose(self) -> None:
        assert not looks_like_markdown("not json at all")

    @pytest.mark.parametrize(
        "text",
        ["intro\n#### Deep heading", '[{"title": "see ## notes"}'],
    )
    def test_heading_marker_not_at_line_start(self, text: str) -> None:
        assert not looks_like_markdown(text)
