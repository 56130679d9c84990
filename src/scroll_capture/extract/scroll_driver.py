import inspect
from typing import Any, Awaitable, Callable, Mapping, Optional

from scroll_capture.errors import (
    ActuatorError,
    AlreadyRunningError,
    CaptureError,
    ProbeError,
)
from scroll_capture.extract.save_capture_log import save_capture_log
from scroll_capture.extract.scroll_strategies import get_scroll_amount, has_grown, is_at_bottom
from scroll_capture.extract.stop_conditions import find_stop_marker
from scroll_capture.types.capture_config import CaptureConfig, load_capture_config
from scroll_capture.types.capture_progress import CaptureProgress, CaptureResult, StoppedReason
from scroll_capture.types.feed_item import FeedExtent
from scroll_capture.types.interfaces import Actuator, Probe, ProgressCallback
from scroll_capture.utils.logger import logger
from scroll_capture.utils.random_delay import random_delay


class ScrollDriver:
    """Drives the reveal loop for one feed and reports why it stopped.

    One driver runs at most one capture at a time. `stop()` is cooperative: the
    flag is read at the top of each cycle and after the bottom settle wait, so an
    in-flight wait always finishes first. A stop issued while idle applies to the
    next run.
    """

    def __init__(self, config: CaptureConfig | Mapping[str, Any]):
        self.config = load_capture_config(config)
        self.progress = CaptureProgress()
        self._active = False
        self._stop_requested = False
        self._log = logger.bind(f"ScrollCapture:{self.config.source_tag}")

    @property
    def is_active(self) -> bool:
        return self._active

    def stop(self) -> None:
        if not self._stop_requested:
            self._log.warning("Scroll capture stop requested")
        self._stop_requested = True

    def discard_stop(self) -> None:
        """Drop a pending stop request so it cannot end a later run."""
        self._stop_requested = False

    async def run(
        self,
        probe: Probe,
        actuator: Actuator,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CaptureResult:
        """Run the reveal loop until a terminal condition, max_cycles, or stop().

        Never raises: failures come back as `CaptureResult(success=False, error=...)`.
        """
        if self._active:
            error = AlreadyRunningError("Scroll capture is already active")
            self._log.error(str(error))
            return CaptureResult(
                success=False,
                progress=CaptureProgress(),
                final_item_count=0,
                total_cycles=0,
                error=error,
            )

        self._active = True
        self.progress = CaptureProgress(
            current_step=f"Starting {self.config.source_tag} scroll capture..."
        )

        try:
            self._log.info(
                f"Starting scroll capture: strategy={self.config.scroll_strategy.value}, "
                f"max_cycles={self.config.max_cycles}, cycle_delay={self.config.cycle_delay}s"
            )
            save_capture_log(self.config, "config", self.config.model_dump(mode="json"))

            await self._perform_scrolling(probe, actuator, on_progress)

            self.progress.is_complete = True
            self.progress.current_step = "Scroll capture completed"
            self._log.success(
                f"Scroll capture complete: {self.progress.item_count} items, "
                f"{self.progress.cycle_count} cycles, reason={self.progress.stopped_reason.value}"
            )
            result = self._result(success=True)
        except CaptureError as e:
            self._log.error(f"Scroll capture failed: {e}")
            self.progress.current_step = "Scroll capture failed"
            result = self._result(success=False, error=e)
        finally:
            self._active = False
            self._stop_requested = False

        save_capture_log(
            self.config,
            "result",
            {**result.progress.to_event(), "success": result.success, "error": result.error},
        )
        return result

    async def _perform_scrolling(
        self,
        probe: Probe,
        actuator: Actuator,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        config = self.config
        progress = self.progress

        previous_count = await self._count(probe)
        previous_extent = await self._extent(probe)
        progress.item_count = previous_count
        progress.current_step = f"Initial item count: {previous_count}"
        self._debug(f"Starting loop with {previous_count} items at offset {previous_extent.offset}")

        stale_cycles = 0
        last_cycle_grew = True

        while True:
            if self._stop_requested:
                self._log.warning("Scroll capture stopped by request")
                progress.stopped_reason = StoppedReason.NONE
                break

            if progress.cycle_count >= config.max_cycles:
                self._log.info("Reached maximum cycle limit")
                progress.stopped_reason = StoppedReason.MAX_CYCLES
                break

            marker = await self._stop_marker(probe)
            if marker:
                self._log.info(f"Stop marker visible ({marker!r}), ending scroll capture")
                progress.stopped_reason = StoppedReason.STOP_CONDITION
                break

            current_count = await self._count(probe)
            current_extent = await self._extent(probe)
            self._debug(
                f"Cycle {progress.cycle_count + 1}/{config.max_cycles}: "
                f"{current_count} items, offset {current_extent.offset}"
            )

            if is_at_bottom(current_extent, config.bottom_threshold):
                self._debug("At end of feed, waiting for late content...")
                await self._settle(config.cycle_delay * config.bottom_settle_factor)
                if self._stop_requested:
                    self._log.warning("Scroll capture stopped by request")
                    progress.stopped_reason = StoppedReason.NONE
                    break
                settled_count = await self._count(probe)
                if settled_count <= current_count:
                    self._log.info("Confirmed end of feed with no new content")
                    progress.stopped_reason = StoppedReason.BOTTOM_REACHED
                    break
                self._debug(f"Late content at end of feed: {current_count} -> {settled_count}")

            amount = get_scroll_amount(config, progress.cycle_count, last_cycle_grew)
            await self._advance(actuator, amount)
            progress.cycle_count += 1
            await self._settle(config.cycle_delay)

            new_count = await self._count(probe)
            new_extent = await self._extent(probe)
            progress.item_count = new_count
            progress.current_step = (
                f"Scrolled {progress.cycle_count} times, found {new_count} items"
            )
            await self._notify(on_progress)

            grew = has_grown(
                previous_count, new_count, previous_extent, new_extent, config.progress_epsilon
            )
            last_cycle_grew = grew
            save_capture_log(
                config,
                "cycle",
                {
                    **progress.to_event(),
                    "amount": amount,
                    "offset": new_extent.offset,
                    "scrollable_size": new_extent.scrollable_size,
                    "grew": grew,
                },
            )

            if grew:
                self._debug(
                    f"Progress: items {previous_count}->{new_count}, "
                    f"offset {previous_extent.offset}->{new_extent.offset}"
                )
                stale_cycles = 0
                previous_count = new_count
                previous_extent = new_extent
                continue

            stale_cycles += 1
            self._debug(f"No progress: {stale_cycles}/{config.stability_limit} stale cycles")
            if stale_cycles < config.stability_limit:
                continue

            if is_at_bottom(new_extent, config.bottom_threshold):
                self._log.info("No progress and confirmed at end of feed")
                progress.stopped_reason = StoppedReason.BOTTOM_REACHED
                break

            if stale_cycles >= config.stability_limit * 2:
                self._log.warning("No progress for too long, giving up")
                progress.stopped_reason = StoppedReason.NO_PROGRESS
                break

            self._debug("No progress but not at end of feed, continuing...")

    def _result(self, success: bool, error: Optional[CaptureError] = None) -> CaptureResult:
        return CaptureResult(
            success=success,
            progress=self.progress.snapshot(),
            final_item_count=self.progress.item_count,
            total_cycles=self.progress.cycle_count,
            error=error,
        )

    def _debug(self, message: str) -> None:
        if self.config.debug:
            self._log.debug(message)

    async def _settle(self, delay: float) -> None:
        await random_delay(delay, self.config.jitter_factor)

    async def _notify(self, on_progress: Optional[ProgressCallback]) -> None:
        if on_progress is None:
            return
        try:
            result = on_progress(self.progress.snapshot())
            if inspect.isawaitable(result):
                await result
        except CaptureError:
            raise
        except Exception as e:
            raise CaptureError(f"Progress callback failed: {e}") from e

    async def _count(self, probe: Probe) -> int:
        return await _call_probe(probe.count, self.config.item_selector)

    async def _extent(self, probe: Probe) -> FeedExtent:
        return await _call_probe(probe.extent)

    async def _stop_marker(self, probe: Probe) -> Optional[str]:
        try:
            return await find_stop_marker(probe, self.config)
        except Exception as e:
            raise ProbeError(f"Stop marker check failed: {e}") from e

    async def _advance(self, actuator: Actuator, amount: float) -> None:
        self._debug(f"Scrolling by {amount}px...")
        try:
            await actuator.advance(amount)
        except Exception as e:
            raise ActuatorError(f"Advance by {amount}px failed: {e}") from e


async def _call_probe(call: Callable[..., Awaitable[Any]], *args: Any) -> Any:
    try:
        return await call(*args)
    except Exception as e:
        name = getattr(call, "__name__", "call")
        raise ProbeError(f"Probe {name} failed: {e}") from e
