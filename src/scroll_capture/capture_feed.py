import inspect
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional

from scroll_capture.errors import (
    ActuatorError,
    AlreadyRunningError,
    CaptureError,
    ConfigError,
    EmptyResultError,
    ProbeError,
)
from scroll_capture.extract.collate_items import (
    ItemDatabase,
    PositionCounter,
    collate,
    finalize,
)
from scroll_capture.extract.save_capture_log import save_capture_log
from scroll_capture.extract.scroll_driver import ScrollDriver
from scroll_capture.types.capture_config import CaptureConfig, load_capture_config
from scroll_capture.types.capture_progress import CaptureProgress, StoppedReason
from scroll_capture.types.interfaces import (
    Actuator,
    ItemSampler,
    Probe,
    ProgressCallback,
    RevealHook,
)
from scroll_capture.utils.logger import logger
from scroll_capture.utils.random_delay import random_delay


@dataclass(frozen=True)
class CaptureOutcome:
    """Result of a full capture: the driver's result plus the deduplicated items."""

    success: bool
    progress: CaptureProgress
    items: list[Any] = field(default_factory=list)
    final_item_count: int = 0
    total_cycles: int = 0
    total_expansions: int = 0
    error: Optional[CaptureError] = None

    @property
    def stopped_reason(self) -> StoppedReason:
        return self.progress.stopped_reason


class FeedCapture:
    """One capture run: seed sample, scroll loop with per-cycle collation, trailing pass.

    The database and position counter are created fresh by every `run()`.
    """

    def __init__(
        self,
        config: CaptureConfig | Mapping[str, Any],
        sampler: ItemSampler,
        reveal_more: Optional[RevealHook] = None,
    ):
        self.config = load_capture_config(config)
        self.sampler = sampler
        self.reveal_more = reveal_more
        self.driver = ScrollDriver(self.config)
        self.database = ItemDatabase()
        self.total_expansions = 0
        self._counter = PositionCounter()
        self._running = False
        self._log = logger.bind(f"FeedCapture:{self.config.source_tag}")

    def stop(self) -> None:
        """Ask the active run to finish after the current cycle. Idempotent.

        Ignored while idle. A stop that lands after the scroll loop has ended
        is dropped when the run finishes.
        """
        if not self._running:
            self._log.debug("Stop requested with no active capture, ignoring")
            return
        self.driver.stop()

    async def run(
        self,
        probe: Probe,
        actuator: Actuator,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CaptureOutcome:
        if self._running:
            error = AlreadyRunningError("Feed capture is already active")
            self._log.error(str(error))
            return self._failure(CaptureProgress(), error)

        self._running = True
        self.driver.discard_stop()
        self.database = ItemDatabase()
        self._counter = PositionCounter()
        self.total_expansions = 0

        try:
            return await self._run(probe, actuator, on_progress)
        except CaptureError as e:
            self._log.error(f"Feed capture failed: {e}")
            return self._failure(self.driver.progress.snapshot(), e)
        finally:
            self._running = False
            self.driver.discard_stop()

    async def _run(
        self,
        probe: Probe,
        actuator: Actuator,
        on_progress: Optional[ProgressCallback],
    ) -> CaptureOutcome:
        await self._reset(actuator)

        seeded = await self._sample_and_collate(probe)
        self._log.info(f"Initial extraction: {seeded} unique items")

        async def handle_progress(progress: CaptureProgress) -> None:
            added = await self._sample_and_collate(probe)
            captured = len(self.database)
            if added:
                self._log.info(f"Found {added} new items during scroll (total: {captured})")
            event = replace(
                progress,
                item_count=captured,
                current_step=f"{progress.current_step} ({captured} items captured)",
            )
            await _emit(on_progress, event)

        result = await self.driver.run(probe, actuator, handle_progress)
        if not result.success:
            return self._failure(result.progress, result.error)

        # Late loads that landed after the last cycle's sample
        await random_delay(self.config.cycle_delay, self.config.jitter_factor)
        trailing = await self._sample_and_collate(probe)
        self._log.info(f"Final extraction: {trailing} additional items")

        items = finalize(self.database)
        if not items:
            raise EmptyResultError("No items were captured during scrolling")

        progress = replace(
            result.progress,
            item_count=len(items),
            is_complete=True,
            current_step=f"Capture completed - {len(items)} items captured in display order",
        )
        await _emit(on_progress, progress)

        outcome = CaptureOutcome(
            success=True,
            progress=progress,
            items=items,
            final_item_count=len(items),
            total_cycles=result.total_cycles,
            total_expansions=self.total_expansions,
        )
        self._log.success(
            f"Captured {len(items)} items in {result.total_cycles} cycles "
            f"(reason={result.stopped_reason.value}, expansions={self.total_expansions})"
        )
        save_capture_log(
            self.config,
            "capture",
            {**progress.to_event(), "total_expansions": self.total_expansions},
        )
        return outcome

    async def _reset(self, actuator: Actuator) -> None:
        try:
            await actuator.reset()
        except Exception as e:
            raise ActuatorError(f"Reset to start of feed failed: {e}") from e

    async def _sample_and_collate(self, probe: Probe) -> int:
        if self.reveal_more is not None:
            self.total_expansions += await self._reveal()

        try:
            handles = await probe.sample(self.config.item_selector)
        except Exception as e:
            raise ProbeError(f"Probe sample failed: {e}") from e

        return await collate(self.database, handles, self._counter, self.sampler)

    async def _reveal(self) -> int:
        try:
            return int(await self.reveal_more() or 0)
        except Exception as e:
            self._log.warning(f"Reveal hook failed, sampling without it: {e}")
            return 0

    def _failure(self, progress: CaptureProgress, error: Optional[CaptureError]) -> CaptureOutcome:
        return CaptureOutcome(
            success=False,
            progress=progress,
            total_cycles=progress.cycle_count,
            total_expansions=self.total_expansions,
            error=error or CaptureError("Scroll capture failed"),
        )


async def _emit(on_progress: Optional[ProgressCallback], progress: CaptureProgress) -> None:
    if on_progress is None:
        return
    try:
        result = on_progress(progress)
        if inspect.isawaitable(result):
            await result
    except CaptureError:
        raise
    except Exception as e:
        raise CaptureError(f"Progress callback failed: {e}") from e


async def capture_feed(
    config: CaptureConfig | Mapping[str, Any],
    probe: Probe,
    actuator: Actuator,
    sampler: ItemSampler,
    on_progress: Optional[ProgressCallback] = None,
    reveal_more: Optional[RevealHook] = None,
) -> CaptureOutcome:
    """Capture every item of a feed. Never raises; failures come back with success=False."""
    try:
        capture = FeedCapture(config, sampler, reveal_more)
    except ConfigError as e:
        logger.error(str(e))
        return CaptureOutcome(success=False, progress=CaptureProgress(), error=e)
    return await capture.run(probe, actuator, on_progress)
