"""Tests for AlertProcessor."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from stock_tracker.core.errors import DeliveryError, StoreError
from stock_tracker.services.alert_processor import AlertProcessor, CycleReport, snapshot_price


class TestSnapshotPrice:
    @pytest.mark.parametrize(
        "raw, expected",
        [(101, 101.0), (101.25, 101.25), ("99.5", 99.5)],
    )
    def test_usable_values(self, raw, expected):
        assert snapshot_price(raw) == expected

    @pytest.mark.parametrize("raw", [None, "n/a", "", True, float("nan"), {"price": 1}])
    def test_unusable_values(self, raw):
        assert snapshot_price(raw) is None


class TestProcessCycleWithoutSuppression:
    """Re-notify-every-cycle mode; no trigger state is written."""

    @pytest.mark.asyncio
    async def test_notifies_when_above_threshold(self, make_alert):
        """Snapshot AAPL 101.00 with alert above 100 notifies once."""
        notifier = AsyncMock()
        processor = AlertProcessor(notifier, suppress_repeats=False)
        alert = make_alert()

        report = await processor.process_cycle([("alert-1", alert)], {"AAPL": 101.00})

        notifier.notify.assert_awaited_once_with(alert, 101.00)
        assert report.notified == 1
        assert report.total == 1

    @pytest.mark.asyncio
    async def test_no_notification_below_threshold(self, make_alert):
        """Snapshot AAPL 99.50 with alert above 100 sends nothing."""
        notifier = AsyncMock()
        processor = AlertProcessor(notifier, suppress_repeats=False)

        report = await processor.process_cycle([("alert-1", make_alert())], {"AAPL": 99.50})

        notifier.notify.assert_not_awaited()
        assert report.not_met == 1

    @pytest.mark.asyncio
    async def test_missing_symbol_is_skipped(self, make_alert):
        """An alert on a symbol absent from the snapshot is skipped quietly."""
        notifier = AsyncMock()
        processor = AlertProcessor(notifier, suppress_repeats=False)

        report = await processor.process_cycle(
            [("alert-z", make_alert(id="alert-z", index_symbol="ZZZZ"))],
            {"AAPL": 101.00},
        )

        notifier.notify.assert_not_awaited()
        assert report == CycleReport(total=1, skipped=1)

    @pytest.mark.asyncio
    async def test_non_numeric_price_is_skipped(self, make_alert):
        notifier = AsyncMock()
        processor = AlertProcessor(notifier, suppress_repeats=False)

        report = await processor.process_cycle([("alert-1", make_alert())], {"AAPL": None})

        notifier.notify.assert_not_awaited()
        assert report.skipped == 1

    @pytest.mark.asyncio
    async def test_malformed_alert_does_not_block_others(self, make_alert):
        """One alert failing evaluation leaves the other alert notified."""
        notifier = AsyncMock()
        processor = AlertProcessor(notifier, suppress_repeats=False)
        broken = make_alert(id="broken", condition="sideways")
        good = make_alert(id="good", index_symbol="TSLA", threshold=200.0, condition="below")

        report = await processor.process_cycle(
            [("broken", broken), ("good", good)],
            {"AAPL": 101.0, "TSLA": 150.0},
        )

        notifier.notify.assert_awaited_once_with(good, 150.0)
        assert report.failed == 1
        assert report.notified == 1

    @pytest.mark.asyncio
    async def test_delivery_failure_does_not_block_others(self, make_alert):
        notifier = AsyncMock()

        async def notify(alert, price):
            if alert.id == "bounce":
                raise DeliveryError("mailbox full")

        notifier.notify.side_effect = notify
        processor = AlertProcessor(notifier, suppress_repeats=False)

        report = await processor.process_cycle(
            [
                ("bounce", make_alert(id="bounce")),
                ("ok", make_alert(id="ok")),
            ],
            {"AAPL": 101.0},
        )

        assert notifier.notify.await_count == 2
        assert report.failed == 1
        assert report.notified == 1

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_contained(self, make_alert):
        notifier = AsyncMock()
        notifier.notify.side_effect = RuntimeError("boom")
        processor = AlertProcessor(notifier, suppress_repeats=False)

        report = await processor.process_cycle([("alert-1", make_alert())], {"AAPL": 101.0})

        assert report.failed == 1

    @pytest.mark.asyncio
    async def test_empty_cycle(self):
        processor = AlertProcessor(AsyncMock(), suppress_repeats=False)

        report = await processor.process_cycle([], {"AAPL": 101.0})

        assert report == CycleReport()

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, make_alert):
        """No more than max_concurrency notifications are in flight."""
        in_flight = 0
        peak = 0

        async def notify(alert, price):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1

        notifier = AsyncMock()
        notifier.notify.side_effect = notify
        processor = AlertProcessor(notifier, max_concurrency=2, suppress_repeats=False)
        alerts = [(f"a{i}", make_alert(id=f"a{i}")) for i in range(6)]

        report = await processor.process_cycle(alerts, {"AAPL": 101.0})

        assert report.notified == 6
        assert peak == 2


class TestTriggerSuppression:
    """Armed -> Triggered -> Armed state handling."""

    @pytest.mark.asyncio
    async def test_armed_alert_fires_and_is_marked(self, make_alert):
        notifier = AsyncMock()
        store = AsyncMock()
        processor = AlertProcessor(notifier, store=store)

        report = await processor.process_cycle([("alert-1", make_alert())], {"AAPL": 101.0})

        notifier.notify.assert_awaited_once()
        store.mark_triggered.assert_awaited_once_with("alert-1")
        assert report.notified == 1

    @pytest.mark.asyncio
    async def test_triggered_alert_is_suppressed(self, make_alert):
        notifier = AsyncMock()
        store = AsyncMock()
        processor = AlertProcessor(notifier, store=store)

        report = await processor.process_cycle(
            [("alert-1", make_alert(is_triggered=True))],
            {"AAPL": 101.0},
        )

        notifier.notify.assert_not_awaited()
        store.mark_triggered.assert_not_awaited()
        assert report.suppressed == 1

    @pytest.mark.asyncio
    async def test_triggered_alert_rearms_when_condition_clears(self, make_alert):
        notifier = AsyncMock()
        store = AsyncMock()
        processor = AlertProcessor(notifier, store=store)

        report = await processor.process_cycle(
            [("alert-1", make_alert(is_triggered=True))],
            {"AAPL": 99.0},
        )

        store.rearm.assert_awaited_once_with("alert-1")
        notifier.notify.assert_not_awaited()
        assert report.rearmed == 1

    @pytest.mark.asyncio
    async def test_failed_delivery_leaves_alert_armed(self, make_alert):
        notifier = AsyncMock()
        notifier.notify.side_effect = DeliveryError("smtp down")
        store = AsyncMock()
        processor = AlertProcessor(notifier, store=store)

        report = await processor.process_cycle([("alert-1", make_alert())], {"AAPL": 101.0})

        store.mark_triggered.assert_not_awaited()
        assert report.failed == 1

    @pytest.mark.asyncio
    async def test_store_failure_is_per_alert(self, make_alert):
        notifier = AsyncMock()
        store = AsyncMock()
        store.mark_triggered.side_effect = [StoreError("locked"), None]
        processor = AlertProcessor(notifier, store=store, max_concurrency=1)

        report = await processor.process_cycle(
            [("a1", make_alert(id="a1")), ("a2", make_alert(id="a2"))],
            {"AAPL": 101.0},
        )

        assert notifier.notify.await_count == 2
        assert report.failed == 1
        assert report.notified == 1

    def test_suppression_requires_store(self):
        with pytest.raises(ValueError, match="requires an alert store"):
            AlertProcessor(AsyncMock(), store=None, suppress_repeats=True)

    def test_rejects_zero_concurrency(self):
        with pytest.raises(ValueError):
            AlertProcessor(AsyncMock(), max_concurrency=0, suppress_repeats=False)
