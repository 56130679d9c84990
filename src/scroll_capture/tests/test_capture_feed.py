import pytest

from scroll_capture.capture_feed import FeedCapture, capture_feed
from scroll_capture.errors import ActuatorError, ConfigError, EmptyResultError, ProbeError
from scroll_capture.extract.fingerprint import CanonicalFingerprint
from scroll_capture.tests.fake_feed import DictSampler, FakeFeed, make_item
from scroll_capture.types.capture_progress import StoppedReason

CONFIG = {
    "item_selector": "article",
    "max_cycles": 10,
    "cycle_delay": 0,
    "initial_amount": 800,
    "later_amount": 800,
    "stability_limit": 2,
}

END_MARKER_CONFIG = {**CONFIG, "stop_markers": {"selectors": [".end"]}}


def three_batch_feed(**kwargs):
    return FakeFeed(
        [make_item(n) for n in range(10)],
        batches=[[make_item(n) for n in range(10, 20)], [make_item(n) for n in range(20, 30)]],
        **kwargs,
    )


class LateSampleFeed(FakeFeed):
    """Renders one extra item from the second sample on."""

    def __init__(self, items, extra, **kwargs):
        super().__init__(items, **kwargs)
        self.extra = extra
        self.samples = 0

    async def sample(self, target):
        self.samples += 1
        if self.samples == 2:
            self.items.append(self.extra)
        return await super().sample(target)


class BrokenSampleFeed(FakeFeed):
    async def sample(self, target):
        raise RuntimeError("target closed")


class BrokenResetFeed(FakeFeed):
    async def reset(self):
        raise RuntimeError("scroll to top failed")


class TestCaptureFeed:
    """Full captures over the synthetic feed."""

    @pytest.mark.asyncio
    async def test_captures_every_item_once_in_display_order(self):
        feed = three_batch_feed()
        outcome = await capture_feed(CONFIG, feed, feed, DictSampler())

        assert outcome.success
        assert outcome.stopped_reason == StoppedReason.BOTTOM_REACHED
        assert outcome.total_cycles == 4
        assert outcome.final_item_count == 30
        assert [item["id"] for item in outcome.items] == [f"post-{n}" for n in range(30)]
        assert feed.resets == 1

    @pytest.mark.asyncio
    async def test_virtualized_feed_keeps_first_seen_order(self):
        """Items scrolled out of the rendered window are kept from earlier samples."""
        feed = three_batch_feed(window=200)
        outcome = await capture_feed(CONFIG, feed, feed, DictSampler())

        assert outcome.success
        assert [item["id"] for item in outcome.items] == [f"post-{n}" for n in range(30)]

    @pytest.mark.asyncio
    async def test_changing_counters_do_not_duplicate_items(self):
        feed = three_batch_feed()
        first = feed.items[0]

        def bump_likes(progress):
            first["metrics"] = {"likes": first["metrics"]["likes"] + 10}

        outcome = await capture_feed(CONFIG, feed, feed, DictSampler(), on_progress=bump_likes)

        assert outcome.final_item_count == 30
        assert outcome.items[0]["metrics"] == {"likes": 0}

    @pytest.mark.asyncio
    async def test_volatile_fields_in_fingerprint_split_records(self):
        feed = three_batch_feed()
        first = feed.items[0]

        def bump_likes(progress):
            first["metrics"] = {"likes": first["metrics"]["likes"] + 10}

        sampler = DictSampler(CanonicalFingerprint(volatile_fields=["metrics.likes"]))
        outcome = await capture_feed(CONFIG, feed, feed, sampler, on_progress=bump_likes)

        assert outcome.final_item_count > 30

    @pytest.mark.asyncio
    async def test_unreadable_items_are_skipped(self):
        items = [make_item(n) for n in range(6)]
        items[1]["broken"] = True
        items[4]["skip"] = True
        feed = FakeFeed(items, markers={".end": 0})
        outcome = await capture_feed(END_MARKER_CONFIG, feed, feed, DictSampler())

        assert outcome.success
        assert [item["id"] for item in outcome.items] == ["post-0", "post-2", "post-3", "post-5"]

    @pytest.mark.asyncio
    async def test_trailing_sample_picks_up_late_items(self):
        feed = LateSampleFeed(
            [make_item(n) for n in range(3)], extra=make_item(99), markers={".end": 0}
        )
        outcome = await capture_feed(END_MARKER_CONFIG, feed, feed, DictSampler())

        assert outcome.stopped_reason == StoppedReason.STOP_CONDITION
        assert outcome.total_cycles == 0
        assert [item["id"] for item in outcome.items] == ["post-0", "post-1", "post-2", "post-99"]

    @pytest.mark.asyncio
    async def test_three_loads_then_nothing_ends_at_bottom(self):
        """Ten items arrive with each of the first three advances, then none."""
        feed = FakeFeed(
            [],
            batches=[[make_item(n) for n in range(10 * b, 10 * b + 10)] for b in range(3)],
            tail=900,
        )
        config = {**CONFIG, "max_cycles": 5, "stability_limit": 2}
        outcome = await capture_feed(config, feed, feed, DictSampler())

        assert outcome.success
        assert outcome.stopped_reason in (StoppedReason.NO_PROGRESS, StoppedReason.BOTTOM_REACHED)
        assert outcome.total_cycles == 4
        assert outcome.final_item_count == 30


class TestCaptureFeedProgress:
    @pytest.mark.asyncio
    async def test_events_report_captured_item_count(self):
        feed = three_batch_feed(window=200)
        events = []
        outcome = await capture_feed(CONFIG, feed, feed, DictSampler(), on_progress=events.append)

        assert [e.cycle_count for e in events[:-1]] == [1, 2, 3, 4]
        assert all("items captured" in e.current_step for e in events[:-1])
        counts = [e.item_count for e in events]
        assert counts == sorted(counts)

        final = events[-1]
        assert final.is_complete
        assert final.item_count == 30
        assert final.stopped_reason == outcome.stopped_reason

    @pytest.mark.asyncio
    async def test_async_progress_callback_is_awaited(self):
        feed = three_batch_feed()
        seen = []

        async def on_progress(progress):
            seen.append(progress.cycle_count)

        await capture_feed(CONFIG, feed, feed, DictSampler(), on_progress=on_progress)

        assert seen[:4] == [1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_stop_keeps_items_captured_so_far(self):
        feed = FakeFeed(
            [make_item(n) for n in range(10)],
            batches=[[make_item(n) for n in range(10 + 5 * b, 15 + 5 * b)] for b in range(20)],
        )
        capture = FeedCapture(CONFIG, DictSampler())

        def on_progress(progress):
            if progress.cycle_count == 2:
                capture.stop()

        outcome = await capture.run(feed, feed, on_progress)

        assert outcome.success
        assert outcome.stopped_reason == StoppedReason.NONE
        assert outcome.total_cycles == 2
        assert outcome.final_item_count == 20

    @pytest.mark.asyncio
    async def test_stop_after_completion_does_not_carry_into_next_run(self):
        capture = FeedCapture(CONFIG, DictSampler())

        def stop_when_done(progress):
            if progress.is_complete:
                capture.stop()

        first_feed = three_batch_feed()
        await capture.run(first_feed, first_feed, stop_when_done)

        second_feed = three_batch_feed()
        outcome = await capture.run(second_feed, second_feed)

        assert outcome.stopped_reason == StoppedReason.BOTTOM_REACHED
        assert outcome.total_cycles == 4
        assert outcome.final_item_count == 30

    @pytest.mark.asyncio
    async def test_stop_while_idle_is_ignored(self):
        capture = FeedCapture(CONFIG, DictSampler())
        capture.stop()

        feed = three_batch_feed()
        outcome = await capture.run(feed, feed)

        assert outcome.stopped_reason == StoppedReason.BOTTOM_REACHED
        assert outcome.final_item_count == 30


class TestCaptureFeedRevealHook:
    @pytest.mark.asyncio
    async def test_hook_runs_before_every_sample(self):
        feed = FakeFeed([make_item(n) for n in range(3)], markers={".end": 0})
        calls = []

        async def reveal_more():
            calls.append(True)
            return 2

        outcome = await capture_feed(
            END_MARKER_CONFIG, feed, feed, DictSampler(), reveal_more=reveal_more
        )

        # seed sample and trailing sample
        assert len(calls) == 2
        assert outcome.total_expansions == 4

    @pytest.mark.asyncio
    async def test_failing_hook_does_not_fail_capture(self):
        feed = FakeFeed([make_item(n) for n in range(3)], markers={".end": 0})

        async def reveal_more():
            raise RuntimeError("button detached")

        outcome = await capture_feed(
            END_MARKER_CONFIG, feed, feed, DictSampler(), reveal_more=reveal_more
        )

        assert outcome.success
        assert outcome.final_item_count == 3
        assert outcome.total_expansions == 0


class TestCaptureFeedFailures:
    @pytest.mark.asyncio
    async def test_empty_feed_is_a_failure(self):
        feed = FakeFeed([])
        outcome = await capture_feed(CONFIG, feed, feed, DictSampler())

        assert not outcome.success
        assert isinstance(outcome.error, EmptyResultError)
        assert outcome.items == []

    @pytest.mark.asyncio
    async def test_invalid_config_is_a_failure(self):
        feed = three_batch_feed()
        outcome = await capture_feed({"item_selector": ""}, feed, feed, DictSampler())

        assert not outcome.success
        assert isinstance(outcome.error, ConfigError)
        assert feed.resets == 0

    @pytest.mark.asyncio
    async def test_sample_failure_is_a_probe_error(self):
        feed = BrokenSampleFeed([make_item(0)])
        outcome = await capture_feed(CONFIG, feed, feed, DictSampler())

        assert not outcome.success
        assert isinstance(outcome.error, ProbeError)

    @pytest.mark.asyncio
    async def test_reset_failure_is_an_actuator_error(self):
        feed = BrokenResetFeed([make_item(0)])
        outcome = await capture_feed(CONFIG, feed, feed, DictSampler())

        assert not outcome.success
        assert isinstance(outcome.error, ActuatorError)

    @pytest.mark.asyncio
    async def test_capture_can_run_again_after_finishing(self):
        capture = FeedCapture(CONFIG, DictSampler())
        first_feed = three_batch_feed()
        second_feed = FakeFeed([make_item(n) for n in range(100, 105)])

        first = await capture.run(first_feed, first_feed)
        second = await capture.run(second_feed, second_feed)

        assert first.final_item_count == 30
        assert [item["id"] for item in second.items] == [f"post-{n}" for n in range(100, 105)]
