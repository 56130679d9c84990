from typing import Optional

from playwright.async_api import Page

from scroll_capture.types.interfaces import RevealHook
from scroll_capture.utils.logger import logger

# Wait after each expansion click for the item to re-render (ms)
DEFAULT_CLICK_WAIT_MS = 300
# Expansion clicks allowed per cycle
DEFAULT_MAX_EXPANSIONS = 10


async def expand_truncated_content(
    page: Page,
    selector: str,
    max_expansions: Optional[int] = DEFAULT_MAX_EXPANSIONS,
    click_wait_ms: int = DEFAULT_CLICK_WAIT_MS,
) -> int:
    """Click visible "see more" style elements so truncated items render in full.

    Returns:
        Number of elements clicked
    """
    clicked = 0
    for element in await page.query_selector_all(selector):
        if max_expansions is not None and clicked >= max_expansions:
            break
        try:
            if await element.is_visible():
                await element.click()
                await page.wait_for_timeout(click_wait_ms)
                clicked += 1
        except Exception as e:
            logger.error(f"Failed to expand element: {e}")

    if clicked:
        logger.debug(f"Expanded {clicked} truncated items")
    return clicked


def make_expand_hook(
    page: Page,
    selector: str,
    max_expansions: Optional[int] = DEFAULT_MAX_EXPANSIONS,
    click_wait_ms: int = DEFAULT_CLICK_WAIT_MS,
) -> RevealHook:
    """Bind expand_truncated_content to a page for use as a capture reveal hook."""

    async def reveal_more() -> int:
        return await expand_truncated_content(page, selector, max_expansions, click_wait_ms)

    return reveal_more
