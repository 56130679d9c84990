import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TextIO

from rich.console import Console
from rich.markup import escape

from scroll_capture.utils.config_dir import get_config_dir

LOG_FILE_NAME = "capture_session.log"

try:
    LOG_FILE: Path | None = get_config_dir() / LOG_FILE_NAME
    log_file_handle: TextIO | None = open(LOG_FILE, "w", encoding="utf-8")
except OSError as e:
    print(f"Error opening capture log file: {e}", file=sys.stderr)
    LOG_FILE = None
    log_file_handle = None


class Logger:
    """Rich console logger with level colors and an optional tag prefix."""

    def __init__(
        self,
        enabled: bool = True,
        file: TextIO | None = log_file_handle,
        tag: str | None = None,
    ):
        self.enabled = enabled
        self.tag = tag
        self._console = Console(file=file) if file else Console(stderr=True)

    def bind(self, tag: str) -> "Logger":
        """Return a logger sharing this console that prefixes every line with `tag`."""
        child = Logger(enabled=self.enabled, tag=tag)
        child._console = self._console
        return child

    def _format(self, message: Any, style: str | None = None) -> str:
        text = escape(str(message))
        if self.tag:
            text = f"{escape(f'[{self.tag}]')} {text}"
        return f"[{style}]{text}[/{style}]" if style else text

    def print(self, *args, **kwargs):
        if self.enabled:
            self._console.print(*args, **kwargs)

    def debug(self, message: Any, *args, **kwargs):
        if self.enabled:
            self._console.print(self._format(message, "dim"), *args, **kwargs)

    def info(self, message: Any, *args, **kwargs):
        if self.enabled:
            self._console.print(self._format(message), *args, **kwargs)

    def warning(self, message: Any, *args, **kwargs):
        if self.enabled:
            self._console.print(self._format(message, "yellow"), *args, **kwargs)

    def error(self, message: Any, *args, **kwargs):
        if self.enabled:
            self._console.print(self._format(message, "red"), *args, **kwargs)

    def success(self, message: Any, *args, **kwargs):
        if self.enabled:
            self._console.print(self._format(message, "green"), *args, **kwargs)

    @contextmanager
    def suppress(self):
        """Temporarily suppress all output."""
        old_enabled = self.enabled
        self.enabled = False
        try:
            yield
        finally:
            self.enabled = old_enabled


logger = Logger()
