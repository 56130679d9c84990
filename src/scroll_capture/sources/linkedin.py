import asyncio
import re
from typing import Any, ClassVar, Optional

from playwright.async_api import async_playwright
from pydantic import BaseModel

from scroll_capture.capture_feed import capture_feed
from scroll_capture.extract.expand_content import make_expand_hook
from scroll_capture.extract.playwright_feed import PlaywrightActuator, PlaywrightProbe
from scroll_capture.extract.schema_sampler import SchemaSampler, container_selector
from scroll_capture.types.capture_config import (
    CaptureConfig,
    ScrollStrategy,
    StopMarkers,
    load_capture_config,
)
from scroll_capture.types.extract_field import ExtractField
from scroll_capture.utils.display_result import ProgressTracker, display_items
from scroll_capture.utils.logger import logger
from scroll_capture.utils.parse_count import parse_count

# Config flags for development (running main)
URL = "https://www.linkedin.com/feed/"
DEBUG = False  # Writes debug jsonl to /debug
MAX_CYCLES = 50
CYCLE_DELAY = 0.4
EXPAND_TRUNCATED = True  # Click "see more" on truncated posts before each sample
DEFAULT_VIEWPORT_HEIGHT = 900

SEE_MORE_SELECTOR = ".feed-shared-inline-show-more-text__see-more-less-toggle"
ACTIVITY_PATTERN = re.compile(r"urn:li:activity:(\d+)|/posts/([^/?]+)|activity-(\d+)")

STOP_MARKERS = StopMarkers(
    selectors=(".artdeco-empty-state", ".feed-follows-module"),
    texts=("You're all caught up", "No more posts", "Suggested for you"),
)


def activity_id(value: Optional[str]) -> Optional[str]:
    """Post id from a data-urn attribute or a post permalink."""
    if not value:
        return None
    match = ACTIVITY_PATTERN.search(value)
    if not match:
        return value
    return next(group for group in match.groups() if group)


async def read_post_id(element: Any, field: ExtractField) -> Optional[str]:
    for attribute in ("data-urn", "data-id", "data-activity-urn"):
        value = await element.get_attribute(attribute)
        if value:
            return activity_id(value)
    link = await element.query_selector('a[href*="/posts/"], a[href*="/activity/"]')
    if link:
        return activity_id(await link.get_attribute("href"))
    return None


async def read_reactions(element: Any, field: ExtractField) -> dict[str, int]:
    reactions = await element.query_selector(".social-details-social-counts__reactions-count")
    comments = await element.query_selector(".social-details-social-counts__comments")
    return {
        "reactions": parse_count(await reactions.inner_text()) if reactions else 0,
        "comments": parse_count(await comments.inner_text()) if comments else 0,
    }


class LinkedInFeedSchema(BaseModel):
    container: ClassVar[ExtractField] = ExtractField(
        selector=".feed-shared-update-v2", is_container=True
    )
    id: ClassVar[ExtractField] = ExtractField(extract=read_post_id, is_source_id=True)
    url: ClassVar[ExtractField] = ExtractField(
        selector='a[href*="/posts/"], a[href*="/activity/"]', attribute="href"
    )
    text: ClassVar[ExtractField] = ExtractField(
        selector=".feed-shared-update-v2__description, .update-components-text",
        transform=lambda x: x.strip() if x else "",
    )
    author: ClassVar[ExtractField] = ExtractField(
        selector=".update-components-actor__title",
        transform=lambda x: x.strip().split("\n")[0] if x else None,
    )
    # Rendered as relative text ("3h", "2d"), resolved to a date when fingerprinting
    created_at: ClassVar[ExtractField] = ExtractField(
        selector=".update-components-actor__sub-description",
        transform=lambda x: x.split("•")[0].strip() if x else None,
    )
    metrics: ClassVar[ExtractField] = ExtractField(extract=read_reactions)


def linkedin_capture_config(
    max_cycles: int = MAX_CYCLES,
    cycle_delay: float = CYCLE_DELAY,
    viewport_height: float = DEFAULT_VIEWPORT_HEIGHT,
    **overrides: Any,
) -> CaptureConfig:
    """Home feed capture: fixed scrolls of most of the window."""
    settings: dict[str, Any] = {
        "item_selector": container_selector(LinkedInFeedSchema),
        "stop_markers": STOP_MARKERS,
        "max_cycles": max_cycles,
        "cycle_delay": cycle_delay,
        "scroll_strategy": ScrollStrategy.FIXED,
        "initial_amount": viewport_height * 0.8,
        "later_amount": viewport_height * 0.8,
        "threshold_cycle": 0,
        "stability_limit": 4,
        "source_tag": "linkedin",
        "debug": DEBUG,
    }
    settings.update(overrides)
    return load_capture_config(settings)


async def main() -> None:
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=False)
        page = await browser.new_page()
        try:
            await page.goto(URL)
            await page.wait_for_selector(container_selector(LinkedInFeedSchema), timeout=15000)

            viewport_height = await page.evaluate("() => window.innerHeight")
            tracker = ProgressTracker(label="posts")
            outcome = await capture_feed(
                linkedin_capture_config(viewport_height=viewport_height),
                PlaywrightProbe(page),
                PlaywrightActuator(page),
                SchemaSampler(LinkedInFeedSchema),
                on_progress=tracker,
                reveal_more=make_expand_hook(page, SEE_MORE_SELECTOR) if EXPAND_TRUNCATED else None,
            )

            if not outcome.success:
                logger.error(f"Capture failed: {outcome.error}")
                return

            logger.info(f"Expanded {outcome.total_expansions} truncated posts")
            display_items(
                items=outcome.items,
                title=f"LinkedIn Feed ({outcome.stopped_reason.value})",
                columns=[
                    ("author", "cyan", True),
                    "text",
                    ("created_at", "yellow", True),
                    "metrics",
                ],
            )
        finally:
            await browser.close()


if __name__ == "__main__":
    asyncio.run(main())
