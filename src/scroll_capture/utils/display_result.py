import time
from typing import Any, Optional, Sequence, Tuple, Union

from rich.console import Console
from rich.table import Table
from rich.text import Text

from scroll_capture.types.capture_progress import CaptureProgress

console = Console()

# Default styles for common payload fields
DEFAULT_STYLES = {
    "text": "white",
    "author": "cyan",
    "created_at": "yellow",
    "url": "blue",
    "metrics": "yellow",
}

# Recent rates kept for smoothing
RATE_WINDOW = 5

Column = Union[str, Tuple[str, str], Tuple[str, str, bool]]


class ProgressTracker:
    """Prints capture progress events with a smoothed capture rate."""

    def __init__(self, label: str = "items", target: Optional[int] = None):
        self.label = label
        self.target = target
        self.start_time = time.time()
        self.last_update_time = self.start_time
        self.last_count = 0
        self.recent_rates: list[float] = []

    def __call__(self, progress: CaptureProgress) -> None:
        self.update(progress)

    def update(self, progress: CaptureProgress) -> None:
        now = time.time()
        elapsed = now - self.last_update_time
        gained = progress.item_count - self.last_count
        if elapsed > 0 and gained > 0:
            self.recent_rates.append(gained / elapsed * 60)
            self.recent_rates = self.recent_rates[-RATE_WINDOW:]

        status = Text()
        status.append(f"Cycle {progress.cycle_count}", style="bright_white")
        status.append(" | ", style="dim")
        status.append(f"{progress.item_count} {self.label}", style="green")
        if self.target:
            percent = progress.item_count / self.target * 100
            status.append(f" of {self.target} ({percent:.1f}%)", style="green")
        status.append(" | ", style="dim")
        status.append(f"{self.rate():.1f} {self.label}/min", style="cyan")
        status.append(" | ", style="dim")
        status.append(format_duration(now - self.start_time), style="yellow")
        if progress.is_complete:
            status.append(f" | done ({progress.stopped_reason.value})", style="magenta")
        console.print(status)

        self.last_update_time = now
        self.last_count = progress.item_count

    def rate(self) -> float:
        """Items per minute, averaged over recent updates."""
        if self.recent_rates:
            return sum(self.recent_rates) / len(self.recent_rates)
        elapsed = max(time.time() - self.start_time, 0.001)
        return self.last_count / elapsed * 60


def format_duration(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3600:
        return f"{seconds / 60:.1f}m"
    return f"{seconds / 3600:.1f}h"


def sample_indices(total: int, limit: int) -> list[int]:
    """Head, middle and tail indices covering at most `limit` of `total` rows."""
    if total <= limit:
        return list(range(total))
    third = limit // 3
    head = list(range(third))
    tail = list(range(total - third, total))
    middle_count = limit - len(head) - len(tail)
    middle_start = total // 2 - middle_count // 2
    middle = list(range(max(middle_start, third), min(middle_start + middle_count, total - third)))
    return head + middle + tail


def display_items(
    items: list[dict[str, Any]],
    title: str,
    columns: Sequence[Column],
    max_display_items: int = 15,
) -> None:
    """Show captured items in a rich table, sampling head/middle/tail for long captures."""
    indices = sample_indices(len(items), max_display_items)
    if len(indices) < len(items):
        title = f"{title} (showing {len(indices)} of {len(items)} items)"

    table = Table(
        title=title,
        show_header=True,
        header_style="bold magenta",
        show_lines=True,
        width=console.width,
    )
    names = []
    for col in columns:
        if isinstance(col, str):
            name, style, no_wrap = col, DEFAULT_STYLES.get(col.lower(), "white"), False
        elif len(col) == 2:
            (name, style), no_wrap = col, False
        else:
            name, style, no_wrap = col
        names.append(name)
        table.add_column(name, style=style, no_wrap=no_wrap)

    previous = None
    for index in indices:
        if previous is not None and index != previous + 1:
            table.add_row(*["..."] * len(names), style="dim")
        item = items[index]
        table.add_row(*[_cell(item.get(name)) for name in names])
        previous = index

    console.print(table)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)
