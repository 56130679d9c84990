from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional

from scroll_capture.errors import CaptureError


class StoppedReason(Enum):
    MAX_CYCLES = "max_cycles"
    STOP_CONDITION = "stop_condition"
    NO_PROGRESS = "no_progress"
    BOTTOM_REACHED = "bottom_reached"
    # Run ended without a terminal signal (external stop() or an error)
    NONE = "none"


@dataclass
class CaptureProgress:
    """Live state of one run. Only the driver writes to it."""

    cycle_count: int = 0
    item_count: int = 0
    current_step: str = "Initializing scroll capture..."
    is_complete: bool = False
    stopped_reason: StoppedReason = StoppedReason.NONE

    def snapshot(self) -> "CaptureProgress":
        return replace(self)

    def to_event(self) -> dict[str, Any]:
        """Progress event shape handed to relays and debug logs."""
        return {
            "cycle_count": self.cycle_count,
            "item_count": self.item_count,
            "current_step": self.current_step,
            "is_complete": self.is_complete,
            "stopped_reason": self.stopped_reason.value,
        }


@dataclass(frozen=True)
class CaptureResult:
    success: bool
    progress: CaptureProgress
    final_item_count: int
    total_cycles: int
    error: Optional[CaptureError] = None

    @property
    def stopped_reason(self) -> StoppedReason:
        return self.progress.stopped_reason
