from typing import Optional

from scroll_capture.types.capture_config import CaptureConfig
from scroll_capture.types.feed_item import ElementRect
from scroll_capture.types.interfaces import Probe


def in_visible_window(rect: Optional[ElementRect], viewport_size: float) -> bool:
    return rect is not None and 0 <= rect.top <= viewport_size


async def find_stop_marker(probe: Probe, config: CaptureConfig) -> Optional[str]:
    """Return the first stop marker (selector, then text) inside the visible window."""
    markers = config.stop_markers
    if not markers.selectors and not markers.texts:
        return None

    viewport_size = (await probe.extent()).viewport_size

    for selector in markers.selectors:
        for rect in await probe.marker_rects(selector):
            if in_visible_window(rect, viewport_size):
                return selector

    for text in markers.texts:
        if in_visible_window(await probe.text_rect(text), viewport_size):
            return text

    return None


async def is_terminal(probe: Probe, config: CaptureConfig) -> bool:
    """Whether an end-of-feed marker is currently visible. Reads the probe only."""
    return await find_stop_marker(probe, config) is not None
