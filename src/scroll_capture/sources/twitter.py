import asyncio
import re
from typing import Any, ClassVar, Optional

from playwright.async_api import async_playwright
from pydantic import BaseModel

from scroll_capture.capture_feed import capture_feed
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
URL = "https://x.com/home"
DEBUG = False  # Writes debug jsonl to /debug
MAX_CYCLES = 100
CYCLE_DELAY = 0.3
# Used when the real window height isn't known yet
DEFAULT_VIEWPORT_HEIGHT = 900

STATUS_ID_PATTERN = re.compile(r"/status/(\d+)")
HANDLE_PATTERN = re.compile(r"@\w+")

STOP_MARKERS = StopMarkers(
    selectors=(
        '[data-testid="error"]',
        '[data-testid="primaryColumn"] [data-testid="emptyState"]',
        ".error-page",
        '[data-testid="empty-state"]',
    ),
    texts=(
        "Something went wrong. Try reloading.",
        "This Tweet was deleted by the Tweet author",
        "This account doesn't exist",
        "This Tweet is unavailable",
    ),
)

ENGAGEMENT_SELECTORS = {
    "likes": '[data-testid="like"], [data-testid="unlike"]',
    "reposts": '[data-testid="retweet"], [data-testid="unretweet"]',
    "replies": '[data-testid="reply"]',
    "views": '[data-testid="analytics"]',
}


def status_id(href: Optional[str]) -> Optional[str]:
    if not href:
        return None
    match = STATUS_ID_PATTERN.search(href)
    return match.group(1) if match else None


def author_handle(user_name: Optional[str]) -> Optional[str]:
    """Pull "@handle" out of the rendered display-name block."""
    if not user_name:
        return None
    match = HANDLE_PATTERN.search(user_name)
    return match.group(0) if match else user_name.strip().split("\n")[0]


async def read_engagement(element: Any, field: ExtractField) -> dict[str, int]:
    metrics = {}
    for name, selector in ENGAGEMENT_SELECTORS.items():
        button = await element.query_selector(selector)
        if not button:
            metrics[name] = 0
            continue
        label = await button.get_attribute("aria-label") or await button.inner_text()
        metrics[name] = parse_count(label)
    return metrics


class TwitterFeedSchema(BaseModel):
    container: ClassVar[ExtractField] = ExtractField(
        selector='article[data-testid="tweet"]', is_container=True
    )
    id: ClassVar[ExtractField] = ExtractField(
        selector='a[href*="/status/"]',
        attribute="href",
        transform=status_id,
        is_source_id=True,
    )
    url: ClassVar[ExtractField] = ExtractField(
        selector='a[href*="/status/"]',
        attribute="href",
        transform=lambda x: f"https://x.com{x}" if x and x.startswith("/") else x,
    )
    text: ClassVar[ExtractField] = ExtractField(
        selector='[data-testid="tweetText"]', transform=lambda x: x.strip() if x else ""
    )
    author: ClassVar[ExtractField] = ExtractField(
        selector='[data-testid="User-Name"]', transform=author_handle
    )
    created_at: ClassVar[ExtractField] = ExtractField(selector="time", attribute="datetime")
    metrics: ClassVar[ExtractField] = ExtractField(extract=read_engagement)


def twitter_capture_config(
    max_cycles: int = MAX_CYCLES,
    cycle_delay: float = CYCLE_DELAY,
    viewport_height: float = DEFAULT_VIEWPORT_HEIGHT,
    **overrides: Any,
) -> CaptureConfig:
    """Timeline capture: small early scrolls while the first batches load, larger ones after."""
    settings: dict[str, Any] = {
        "item_selector": container_selector(TwitterFeedSchema),
        "stop_markers": STOP_MARKERS,
        "max_cycles": max_cycles,
        "cycle_delay": cycle_delay,
        "scroll_strategy": ScrollStrategy.PROGRESSIVE,
        "initial_amount": viewport_height * 0.6,
        "later_amount": viewport_height * 0.8,
        "threshold_cycle": 8,
        "stability_limit": 8,
        "source_tag": "twitter",
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
            await page.wait_for_selector(container_selector(TwitterFeedSchema), timeout=15000)

            viewport_height = await page.evaluate("() => window.innerHeight")
            tracker = ProgressTracker(label="tweets")
            outcome = await capture_feed(
                twitter_capture_config(viewport_height=viewport_height),
                PlaywrightProbe(page),
                PlaywrightActuator(page),
                SchemaSampler(TwitterFeedSchema),
                on_progress=tracker,
            )

            if not outcome.success:
                logger.error(f"Capture failed: {outcome.error}")
                return

            display_items(
                items=outcome.items,
                title=f"Twitter Timeline ({outcome.stopped_reason.value})",
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
