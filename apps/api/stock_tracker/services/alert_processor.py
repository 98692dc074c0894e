from __future__ import annotations

import asyncio
import logging
import math
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from stock_tracker.core.errors import AlertPipelineError
from stock_tracker.schemas.alert import AlertRecord
from stock_tracker.services.alert_evaluator import evaluate
from stock_tracker.services.alert_store import AlertStore
from stock_tracker.services.notifier import EmailNotifier

logger = logging.getLogger(__name__)


class AlertOutcome(str, Enum):
    SKIPPED = "skipped"
    NOT_MET = "not_met"
    NOTIFIED = "notified"
    SUPPRESSED = "suppressed"
    REARMED = "rearmed"
    FAILED = "failed"


@dataclass(frozen=True)
class CycleReport:
    total: int = 0
    skipped: int = 0
    not_met: int = 0
    notified: int = 0
    suppressed: int = 0
    rearmed: int = 0
    failed: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: Sequence[AlertOutcome]) -> "CycleReport":
        counts = Counter(outcome.value for outcome in outcomes)
        return cls(total=len(outcomes), **counts)

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def snapshot_price(value: Any) -> float | None:
    """Return a usable price from a raw snapshot value, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


class AlertProcessor:
    """Evaluates every alert of a cycle against one price snapshot.

    Alerts are processed concurrently, at most ``max_concurrency`` at a time.
    A failure in one alert is logged and counted; it never stops the others.

    With ``suppress_repeats`` an alert that already fired stays quiet until its
    condition clears, at which point it is re-armed in the store.
    """

    def __init__(
        self,
        notifier: EmailNotifier,
        store: AlertStore | None = None,
        max_concurrency: int = 8,
        suppress_repeats: bool = True,
    ) -> None:
        if suppress_repeats and store is None:
            raise ValueError("suppress_repeats requires an alert store")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.notifier = notifier
        self.store = store
        self.max_concurrency = max_concurrency
        self.suppress_repeats = suppress_repeats

    async def process_cycle(
        self,
        alerts: Sequence[tuple[str, AlertRecord]],
        snapshot: Mapping[str, Any],
    ) -> CycleReport:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(alert_id: str, alert: AlertRecord) -> AlertOutcome:
            async with semaphore:
                return await self._process_alert(alert_id, alert, snapshot)

        outcomes = await asyncio.gather(*(bounded(alert_id, alert) for alert_id, alert in alerts))
        return CycleReport.from_outcomes(outcomes)

    async def _process_alert(self, alert_id: str, alert: AlertRecord, snapshot: Mapping[str, Any]) -> AlertOutcome:
        try:
            return await self._evaluate_and_notify(alert_id, alert, snapshot)
        except AlertPipelineError as exc:
            logger.error("Failed to process alert %s (%s): %s", alert_id, alert.index_symbol, exc)
        except Exception:
            logger.exception("Unexpected error processing alert %s (%s)", alert_id, alert.index_symbol)
        return AlertOutcome.FAILED

    async def _evaluate_and_notify(
        self,
        alert_id: str,
        alert: AlertRecord,
        snapshot: Mapping[str, Any],
    ) -> AlertOutcome:
        current_price = snapshot_price(snapshot.get(alert.index_symbol))
        if current_price is None:
            logger.warning("No price data for %s (alert %s)", alert.index_symbol, alert_id)
            return AlertOutcome.SKIPPED

        condition_met = evaluate(current_price, alert.threshold, alert.condition)
        already_triggered = self.suppress_repeats and alert.is_triggered

        if not condition_met:
            if already_triggered:
                await self.store.rearm(alert_id)
                logger.info("Alert %s re-armed: %s back at %.2f", alert_id, alert.index_symbol, current_price)
                return AlertOutcome.REARMED
            return AlertOutcome.NOT_MET

        if already_triggered:
            return AlertOutcome.SUPPRESSED

        await self.notifier.notify(alert, current_price)
        if self.suppress_repeats:
            await self.store.mark_triggered(alert_id)
        return AlertOutcome.NOTIFIED
