from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from scroll_capture.types.capture_progress import CaptureProgress
from scroll_capture.types.feed_item import ElementRect, FeedExtent, ItemHandle, ItemIdentifier


class Probe(Protocol):
    """Read-only view of the feed."""

    async def count(self, target: str) -> int: ...

    async def sample(self, target: str) -> list[ItemHandle]: ...

    async def extent(self) -> FeedExtent: ...

    async def marker_rects(self, selector: str) -> list[ElementRect]: ...

    async def text_rect(self, text: str) -> Optional[ElementRect]: ...


class Actuator(Protocol):
    """Reveals more of the feed. Best-effort: may do nothing near the end."""

    async def advance(self, amount: float) -> None: ...

    async def reset(self) -> None: ...


class ItemSampler(Protocol):
    """Per-source policy turning item handles into identifiers and payloads.

    `to_identifier` may return None to skip a handle that is not a real item.
    """

    async def to_identifier(self, handle: ItemHandle) -> Optional[ItemIdentifier]: ...

    async def to_payload(self, handle: ItemHandle) -> Any: ...

    def fingerprint(self, identifier: ItemIdentifier, payload: Any) -> str: ...


# Invoked once per cycle before sampling; returns how many elements it expanded
RevealHook = Callable[[], Awaitable[int]]

ProgressCallback = Callable[[CaptureProgress], Union[None, Awaitable[None]]]
