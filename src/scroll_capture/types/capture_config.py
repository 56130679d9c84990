from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from scroll_capture.errors import ConfigError

# Upper bound on reveal cycles for one run
DEFAULT_MAX_CYCLES = 50
# Seconds to wait after each advance for content to settle
DEFAULT_CYCLE_DELAY = 0.4
# Scroll distance (px) for early cycles, or for every cycle with the fixed strategy
DEFAULT_INITIAL_AMOUNT = 600
# Scroll distance (px) once the progressive threshold has passed
DEFAULT_LATER_AMOUNT = 800
# Cycle after which the progressive strategy switches to the later amount
DEFAULT_THRESHOLD_CYCLE = 8
# Consecutive cycles without growth before checking for the end of the feed
DEFAULT_STABILITY_LIMIT = 4
# Remaining scroll distance (px) under which the feed counts as at its extent
DEFAULT_BOTTOM_THRESHOLD = 50
# Offset or height change (px) that counts as movement
DEFAULT_PROGRESS_EPSILON = 10
# Multiple of cycle_delay waited before confirming the bottom of the feed
DEFAULT_BOTTOM_SETTLE_FACTOR = 2.0


class ScrollStrategy(Enum):
    PROGRESSIVE = "progressive"
    FIXED = "fixed"
    ADAPTIVE = "adaptive"


class StopMarkers(BaseModel):
    """Markers that mean the feed has nothing more to show."""

    model_config = ConfigDict(frozen=True)

    # CSS selectors for end-of-feed or error elements
    selectors: tuple[str, ...] = ()
    # Text that only appears at end states (searched in the document text)
    texts: tuple[str, ...] = ()


class CaptureConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Probe target: selector matching one feed item
    item_selector: str = Field(min_length=1)
    stop_markers: StopMarkers = StopMarkers()

    # Loop bounds
    max_cycles: int = Field(default=DEFAULT_MAX_CYCLES, ge=0)
    cycle_delay: float = Field(default=DEFAULT_CYCLE_DELAY, ge=0)
    # Random variation applied to settle waits (0.2 = +/-20%)
    jitter_factor: float = Field(default=0.0, ge=0, lt=1)

    # Scroll behavior
    scroll_strategy: ScrollStrategy = ScrollStrategy.PROGRESSIVE
    initial_amount: float = Field(default=DEFAULT_INITIAL_AMOUNT, gt=0)
    later_amount: float = Field(default=DEFAULT_LATER_AMOUNT, gt=0)
    threshold_cycle: int = Field(default=DEFAULT_THRESHOLD_CYCLE, ge=0)

    # Stability / end detection
    stability_limit: int = Field(default=DEFAULT_STABILITY_LIMIT, ge=1)
    bottom_threshold: float = Field(default=DEFAULT_BOTTOM_THRESHOLD, ge=0)
    progress_epsilon: float = Field(default=DEFAULT_PROGRESS_EPSILON, ge=0)
    bottom_settle_factor: float = Field(default=DEFAULT_BOTTOM_SETTLE_FACTOR, ge=0)

    # Source information
    source_tag: str = "feed"

    # Debug options
    debug: bool = False
    debug_file: Optional[str] = None

    @model_validator(mode="after")
    def _check_markers(self) -> "CaptureConfig":
        if any(not s.strip() for s in self.stop_markers.selectors):
            raise ValueError("stop marker selectors must be non-empty")
        if any(not t.strip() for t in self.stop_markers.texts):
            raise ValueError("stop marker texts must be non-empty")
        return self


def load_capture_config(data: CaptureConfig | Mapping[str, Any]) -> CaptureConfig:
    """Validate a mapping (or pass through a config), raising ConfigError on failure."""
    if isinstance(data, CaptureConfig):
        return data
    try:
        return CaptureConfig.model_validate(dict(data))
    except (ValidationError, TypeError) as e:
        raise ConfigError(f"Invalid capture config: {e}") from e
