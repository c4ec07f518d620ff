"""End-to-end tests for the all-or-nothing extraction run."""

import json
from pathlib import Path

import pytest
from conftest import FakeResponse, make_message, ok, release_json

from releasemon import config, pipeline
from releasemon.errors import ConfigurationError, TransportError
from releasemon.extractor import ReleaseExtractor
from releasemon.pipeline import run_extraction, run_pipeline
from releasemon.prompts import PromptResolver
from releasemon.store import ProcessedSetTracker


def _run(tmp_path: Path, client, config, messages):
    tracker = ProcessedSetTracker(tmp_path / "state.json")
    extractor = ReleaseExtractor(client, config, PromptResolver())
    return run_extraction(messages, tracker, extractor, tmp_path / "releases.json")


class TestRunExtraction:
    def test_commits_releases_and_ids(self, tmp_path: Path, fake_client, completion_config) -> None:
        client, _ = fake_client(ok(release_json("m1")), ok("[]"))
        releases = _run(tmp_path, client, completion_config, [make_message("m1"), make_message("m2")])

        assert len(releases) == 1
        assert json.loads((tmp_path / "state.json").read_text()) == {"processedIds": ["m1", "m2"]}
        written = json.loads((tmp_path / "releases.json").read_text())
        assert written == [
            {"date": "2024-01-15", "title": "v1.0.0", "description": "Shipped", "sourceMessageId": "m1"}
        ]

    def test_rerun_skips_processed(self, tmp_path: Path, fake_client, completion_config) -> None:
        client, _ = fake_client(ok(release_json("m1")))
        _run(tmp_path, client, completion_config, [make_message("m1")])

        client, session = fake_client(ok(release_json("m2", "v2")))
        releases = _run(tmp_path, client, completion_config, [make_message("m1"), make_message("m2")])

        assert [r.title for r in releases] == ["v2"]
        assert len(session.calls) == 1
        titles = [r["title"] for r in json.loads((tmp_path / "releases.json").read_text())]
        assert titles == ["v1.0.0", "v2"]

    def test_nothing_new_makes_no_calls(self, tmp_path: Path, fake_client, completion_config) -> None:
        (tmp_path / "state.json").write_text(json.dumps({"processedIds": ["m1"]}))
        client, session = fake_client()
        assert _run(tmp_path, client, completion_config, [make_message("m1")]) == []
        assert session.calls == []

    def test_failure_mid_batch_commits_nothing(self, tmp_path: Path, fake_client, completion_config) -> None:
        client, _ = fake_client(
            ok(release_json("m1")),
            FakeResponse(500, "internal error"),
            ok(release_json("m3")),
        )
        with pytest.raises(TransportError):
            _run(tmp_path, client, completion_config, [make_message(i) for i in ("m1", "m2", "m3")])

        assert not (tmp_path / "state.json").exists()
        assert not (tmp_path / "releases.json").exists()

        tracker = ProcessedSetTracker(tmp_path / "state.json")
        tracker.load()
        assert len(tracker.filter_unprocessed([make_message(i) for i in ("m1", "m2", "m3")])) == 3


class TestRunPipeline:
    def test_wires_config_into_run(
        self, tmp_path: Path, fake_client, completion_config, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        client, session = fake_client(ok(release_json("m1")))
        monkeypatch.setattr(pipeline, "CompletionClient", lambda cfg: client)
        monkeypatch.setattr(config, "PROMPTS_DIR", None)

        releases = run_pipeline(
            [make_message("m1")],
            state_path=tmp_path / "state.json",
            output_path=tmp_path / "releases.json",
            require_prompt=False,
            trace=True,
            completion=completion_config,
        )

        assert [r.source_message_id for r in releases] == ["m1"]
        assert len(session.calls) == 1
        assert json.loads((tmp_path / "state.json").read_text()) == {"processedIds": ["m1"]}

    def test_required_prompt_without_registry(
        self, tmp_path: Path, fake_client, completion_config, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        client, session = fake_client()
        monkeypatch.setattr(pipeline, "CompletionClient", lambda cfg: client)
        monkeypatch.setattr(config, "PROMPTS_DIR", None)

        with pytest.raises(ConfigurationError):
            run_pipeline(
                [make_message("m1")],
                state_path=tmp_path / "state.json",
                output_path=tmp_path / "releases.json",
                require_prompt=True,
                completion=completion_config,
            )
        assert session.calls == []
