"""Unit tests for the release log file."""

from pathlib import Path

import pytest

from releasemon.errors import ConfigurationError
from releasemon.models import Release
from releasemon.release_log import append_releases, read_releases


class TestReleaseLog:
    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert read_releases(tmp_path / "releases.json") == []

    def test_append_keeps_existing(self, tmp_path: Path) -> None:
        path = tmp_path / "releases.json"
        append_releases(path, [Release(title="a", source_message_id="m1")])
        total = append_releases(path, [Release(title="b", source_message_id="m2", impact="web")])

        assert total == 2
        releases = read_releases(path)
        assert [r.title for r in releases] == ["a", "b"]
        assert releases[1].impact == "web"

    def test_corrupt_log(self, tmp_path: Path) -> None:
        path = tmp_path / "releases.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            read_releases(path)
