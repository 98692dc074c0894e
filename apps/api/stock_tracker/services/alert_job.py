from __future__ import annotations

import logging
import time

from stock_tracker.core.config import Settings
from stock_tracker.core.database import SessionLocal
from stock_tracker.core.errors import FetchError, StoreError
from stock_tracker.services.alert_processor import AlertProcessor, CycleReport
from stock_tracker.services.alert_store import AlertStore
from stock_tracker.services.mail_sender import SmtpMailSender
from stock_tracker.services.notifier import EmailNotifier
from stock_tracker.services.price_snapshot import PriceSnapshotFetcher
from stock_tracker.services.providers.wallstreet_odds_provider import WallStreetOddsProvider
from stock_tracker.services.scheduler import AlertScheduler

logger = logging.getLogger(__name__)


class AlertJob:
    """One alert cycle: snapshot, load alerts, process.

    Snapshot or store failures abort the cycle and return None; the next
    scheduled cycle starts from scratch.
    """

    def __init__(self, fetcher: PriceSnapshotFetcher, store: AlertStore, processor: AlertProcessor) -> None:
        self.fetcher = fetcher
        self.store = store
        self.processor = processor

    async def run_cycle(self) -> CycleReport | None:
        started = time.perf_counter()
        logger.info("Alert cycle started")

        try:
            snapshot = await self.fetcher.fetch()
        except FetchError as exc:
            logger.error("Alert cycle aborted, price snapshot failed: %s", exc)
            return None

        try:
            alerts = await self.store.list_all()
        except StoreError as exc:
            logger.error("Alert cycle aborted, could not list alerts: %s", exc)
            return None

        report = await self.processor.process_cycle(alerts, snapshot)
        logger.info(
            "Processed %d alerts in %.2fs: %d notified, %d suppressed, %d re-armed, %d skipped, %d failed",
            report.total,
            time.perf_counter() - started,
            report.notified,
            report.suppressed,
            report.rearmed,
            report.skipped,
            report.failed,
        )
        return report


def build_alert_scheduler(settings: Settings) -> AlertScheduler:
    store = AlertStore(SessionLocal)
    job = AlertJob(
        fetcher=PriceSnapshotFetcher(WallStreetOddsProvider.from_settings(settings)),
        store=store,
        processor=AlertProcessor(
            notifier=EmailNotifier(SmtpMailSender.from_settings(settings)),
            store=store,
            max_concurrency=settings.alert_max_concurrency,
            suppress_repeats=settings.alert_suppress_repeats,
        ),
    )
    return AlertScheduler(
        job,
        interval_seconds=settings.alert_check_interval_seconds,
        run_on_startup=settings.alert_run_on_startup,
    )
