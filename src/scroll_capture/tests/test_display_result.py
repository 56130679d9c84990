from scroll_capture.types.capture_progress import CaptureProgress, StoppedReason
from scroll_capture.utils.display_result import (
    ProgressTracker,
    display_items,
    format_duration,
    sample_indices,
)


class TestSampleIndices:
    def test_short_lists_are_shown_whole(self):
        assert sample_indices(5, 15) == [0, 1, 2, 3, 4]

    def test_long_lists_sample_head_middle_tail(self):
        indices = sample_indices(100, 15)

        assert len(indices) == 15
        assert indices[:5] == [0, 1, 2, 3, 4]
        assert indices[-5:] == [95, 96, 97, 98, 99]
        assert indices == sorted(set(indices))


class TestDisplay:
    def test_format_duration(self):
        assert format_duration(12.34) == "12.3s"
        assert format_duration(90) == "1.5m"
        assert format_duration(7200) == "2.0h"

    def test_display_items_renders(self, capsys):
        items = [{"author": f"@u{n}", "text": f"post {n}", "metrics": {"likes": n}} for n in range(40)]

        display_items(items, "Feed", ["author", ("text", "white"), ("metrics", "yellow", True)])

        assert "showing 15 of 40 items" in capsys.readouterr().out

    def test_progress_tracker(self, capsys):
        tracker = ProgressTracker(label="posts", target=100)

        tracker(CaptureProgress(cycle_count=1, item_count=10))
        tracker(
            CaptureProgress(
                cycle_count=2,
                item_count=25,
                is_complete=True,
                stopped_reason=StoppedReason.BOTTOM_REACHED,
            )
        )

        out = capsys.readouterr().out
        assert "25 posts" in out
        assert "bottom_reached" in out
        assert tracker.last_count == 25
