from scroll_capture.types.capture_config import CaptureConfig, ScrollStrategy
from scroll_capture.types.feed_item import FeedExtent


def get_scroll_amount(config: CaptureConfig, cycle_count: int, last_cycle_grew: bool) -> float:
    """Pick the scroll distance for the next advance.

    Args:
        config: Capture configuration
        cycle_count: Cycles completed so far
        last_cycle_grew: Whether the most recent cycle showed growth

    Returns:
        Distance in pixels to pass to the actuator
    """
    if config.scroll_strategy == ScrollStrategy.PROGRESSIVE:
        if cycle_count < config.threshold_cycle:
            return config.initial_amount
        return config.later_amount

    if config.scroll_strategy == ScrollStrategy.ADAPTIVE:
        # Small steps while content keeps arriving, bigger jumps when it stalls
        return config.initial_amount if last_cycle_grew else config.later_amount

    return config.initial_amount


def is_at_bottom(extent: FeedExtent, threshold: float) -> bool:
    """Whether the visible window is within `threshold` px of the feed's end."""
    return extent.remaining <= threshold


def has_grown(
    previous_count: int,
    current_count: int,
    previous_extent: FeedExtent,
    current_extent: FeedExtent,
    epsilon: float,
) -> bool:
    """Growth is more items, or the offset or feed height moving by more than epsilon."""
    if current_count > previous_count:
        return True
    if abs(current_extent.offset - previous_extent.offset) > epsilon:
        return True
    return abs(current_extent.scrollable_size - previous_extent.scrollable_size) > epsilon
