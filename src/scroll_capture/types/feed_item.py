from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True)
class FeedExtent:
    # Current scroll offset (px from the top of the feed)
    offset: float
    # Total scrollable height of the feed
    scrollable_size: float
    # Height of the visible window
    viewport_size: float

    @property
    def remaining(self) -> float:
        """Scroll distance left below the visible window."""
        return self.scrollable_size - (self.offset + self.viewport_size)


@dataclass(frozen=True)
class ElementRect:
    """Element box relative to the visible window (top=0 is the window's top edge)."""

    top: float
    left: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass(frozen=True)
class ItemHandle:
    """One item as reported by a probe sample, in probe order."""

    # Underlying element (Playwright ElementHandle, fake node, ...)
    element: Any
    # Position within the sample
    index: int
    rect: ElementRect = field(default_factory=lambda: ElementRect(top=0.0))
    # Element id attribute, when the feed sets one
    dom_id: Optional[str] = None
    # Visible text, when the probe collected it cheaply
    text: Optional[str] = None


class ItemIdentifier(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Stable id from the source (post URN, status id), when available
    source_id: Optional[str] = None
    url: Optional[str] = None
    # Raw timestamp text as rendered
    timestamp: Optional[str] = None
    content_hash: str = ""
    # Assigned once, when the item is first admitted to the database
    first_seen_position: Optional[int] = None
    # Derived from position and content; only meaningful within one sample
    transient_handle: str = ""

    @property
    def key(self) -> str:
        """Best available identity: the stable id, else timestamp/position/content."""
        if self.source_id:
            return self.source_id
        return "|".join([self.timestamp or "", self.transient_handle, self.content_hash])


class ExtractedItemRecord(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    payload: Any
    identifier: ItemIdentifier
    first_seen_position: int
    captured_at: datetime
