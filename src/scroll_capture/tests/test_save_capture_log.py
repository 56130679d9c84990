import json
from pathlib import Path

from scroll_capture.extract.save_capture_log import debug_log_path, save_capture_log
from scroll_capture.types.capture_config import CaptureConfig


class TestSaveCaptureLog:
    def test_disabled_without_debug(self, tmp_path):
        path = tmp_path / "capture.jsonl"
        config = CaptureConfig(item_selector="article", debug_file=str(path))

        save_capture_log(config, "cycle", {"cycle_count": 1})

        assert not path.exists()

    def test_appends_entries(self, tmp_path):
        path = tmp_path / "nested" / "capture.jsonl"
        config = CaptureConfig(
            item_selector="article", debug=True, debug_file=str(path), source_tag="linkedin"
        )

        save_capture_log(config, "cycle", {"cycle_count": 1})
        save_capture_log(config, "result", {"error": ValueError("boom")})

        entries = [json.loads(line) for line in path.read_text().splitlines()]
        assert [e["type"] for e in entries] == ["cycle", "result"]
        assert entries[0]["source"] == "linkedin"
        assert entries[0]["data"] == {"cycle_count": 1}
        # Non-JSON values are stringified
        assert entries[1]["data"]["error"] == "boom"

    def test_default_path_uses_source_slug(self):
        config = CaptureConfig(item_selector="article", source_tag="LinkedIn Feed")
        assert debug_log_path(config) == Path("debug") / "capture_linkedin-feed.jsonl"

    def test_unwritable_path_is_logged_not_raised(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        config = CaptureConfig(
            item_selector="article", debug=True, debug_file=str(blocker / "capture.jsonl")
        )

        save_capture_log(config, "cycle", {})
