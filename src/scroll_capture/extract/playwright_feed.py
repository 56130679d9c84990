"""
Playwright-backed Probe and Actuator for capturing a feed in a live browser tab.
Uses the async Playwright API; all coordinates are CSS pixels relative to the
window, matching what getBoundingClientRect reports.
"""

from typing import Optional

from playwright.async_api import ElementHandle, Page

from scroll_capture.types.feed_item import ElementRect, FeedExtent, ItemHandle
from scroll_capture.utils.logger import logger

EXTENT_SCRIPT = """() => ({
    offset: window.pageYOffset,
    scrollableSize: document.documentElement.scrollHeight,
    viewportSize: window.innerHeight,
})"""

RECT_SCRIPT = """(el) => {
    const r = el.getBoundingClientRect();
    return {top: r.top, left: r.left, width: r.width, height: r.height, id: el.id || null};
}"""

# Walks text nodes and returns the parent element of the first match
FIND_TEXT_SCRIPT = """(needle) => {
    const walker = document.createTreeWalker(document.documentElement, NodeFilter.SHOW_TEXT, null);
    let node;
    while ((node = walker.nextNode())) {
        if (node.textContent && node.textContent.includes(needle)) {
            const r = node.parentElement.getBoundingClientRect();
            return {top: r.top, left: r.left, width: r.width, height: r.height};
        }
    }
    return null;
}"""

# Wait after the instant scroll to top before verifying the position (ms)
RESET_SETTLE_MS = 500
# Wait after forcing scrollTop directly (ms)
RESET_FORCE_SETTLE_MS = 300


def _to_rect(box: Optional[dict]) -> Optional[ElementRect]:
    if not box:
        return None
    return ElementRect(
        top=box["top"], left=box["left"], width=box["width"], height=box["height"]
    )


class PlaywrightProbe:
    """Read-only probe over an async Playwright page."""

    def __init__(self, page: Page, collect_text: bool = True):
        self.page = page
        self.collect_text = collect_text

    async def count(self, target: str) -> int:
        return len(await self.page.query_selector_all(target))

    async def sample(self, target: str) -> list[ItemHandle]:
        handles = []
        for index, element in enumerate(await self.page.query_selector_all(target)):
            box = await element.evaluate(RECT_SCRIPT)
            text = await element.inner_text() if self.collect_text else None
            handles.append(
                ItemHandle(
                    element=element,
                    index=index,
                    rect=_to_rect(box) or ElementRect(top=0.0),
                    dom_id=box.get("id") if box else None,
                    text=text,
                )
            )
        return handles

    async def extent(self) -> FeedExtent:
        data = await self.page.evaluate(EXTENT_SCRIPT)
        return FeedExtent(
            offset=data["offset"],
            scrollable_size=data["scrollableSize"],
            viewport_size=data["viewportSize"],
        )

    async def marker_rects(self, selector: str) -> list[ElementRect]:
        elements: list[ElementHandle] = await self.page.query_selector_all(selector)
        return [_to_rect(await element.evaluate(RECT_SCRIPT)) for element in elements]

    async def text_rect(self, text: str) -> Optional[ElementRect]:
        return _to_rect(await self.page.evaluate(FIND_TEXT_SCRIPT, text))


class PlaywrightActuator:
    """Scrolls the window of an async Playwright page."""

    def __init__(self, page: Page, smooth: bool = True):
        self.page = page
        self.behavior = "smooth" if smooth else "instant"

    async def advance(self, amount: float) -> None:
        await self.page.evaluate(
            "([top, behavior]) => window.scrollBy({top, behavior})",
            [amount, self.behavior],
        )

    async def reset(self) -> None:
        """Scroll to the absolute top, forcing scrollTop if the instant scroll didn't stick."""
        await self.page.evaluate("() => window.scrollTo({top: 0, behavior: 'instant'})")
        await self.page.wait_for_timeout(RESET_SETTLE_MS)

        offset = await self.page.evaluate("() => window.pageYOffset")
        if offset > 0:
            logger.debug(f"Still at {offset}px after scroll to top, forcing scrollTop")
            await self.page.evaluate(
                "() => { document.documentElement.scrollTop = 0; document.body.scrollTop = 0; }"
            )
            await self.page.wait_for_timeout(RESET_FORCE_SETTLE_MS)
