from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

from stock_tracker.services.providers.base import ALL_SYMBOLS, MarketDataProvider

logger = logging.getLogger(__name__)

PriceSnapshot = dict[str, Any]


class PriceSnapshotFetcher:
    """Builds the symbol -> last price map used by one alert cycle.

    Prices are kept exactly as the upstream returned them; the processor
    decides which ones are usable. A provider ``FetchError`` propagates
    unchanged and is never retried here.
    """

    FIELDS = ("symbol", "price")

    def __init__(self, provider: MarketDataProvider) -> None:
        self.provider = provider

    async def fetch(self) -> PriceSnapshot:
        started = time.perf_counter()
        rows = await self.provider.get_live_prices(ALL_SYMBOLS, self.FIELDS)

        snapshot: PriceSnapshot = {}
        for row in rows:
            if not isinstance(row, Mapping):
                continue
            symbol = row.get("symbol")
            if not symbol:
                continue
            snapshot[str(symbol)] = row.get("price")

        logger.info(
            "Fetched price snapshot: %d symbols in %.2fs",
            len(snapshot),
            time.perf_counter() - started,
        )
        return snapshot
