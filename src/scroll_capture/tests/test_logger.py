import io

from scroll_capture.utils.config_dir import get_config_dir
from scroll_capture.utils.logger import Logger


class TestLogger:
    def test_bound_tag_prefixes_lines(self):
        buffer = io.StringIO()
        log = Logger(file=buffer).bind("ScrollCapture:twitter")

        log.info("Reached maximum cycle limit")

        assert "[ScrollCapture:twitter] Reached maximum cycle limit" in buffer.getvalue()

    def test_markup_in_messages_is_escaped(self):
        buffer = io.StringIO()
        Logger(file=buffer).warning("selector [data-testid=tweet] missing")

        assert "[data-testid=tweet]" in buffer.getvalue()

    def test_suppress(self):
        buffer = io.StringIO()
        log = Logger(file=buffer)

        with log.suppress():
            log.error("hidden")
        log.success("shown")

        assert "hidden" not in buffer.getvalue()
        assert "shown" in buffer.getvalue()


class TestConfigDir:
    def test_env_override(self, tmp_path, monkeypatch):
        target = tmp_path / "capture-config"
        monkeypatch.setenv("SCROLL_CAPTURE_CONFIG_DIR", str(target))

        assert get_config_dir() == target
        assert target.is_dir()
