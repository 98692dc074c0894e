from __future__ import annotations

import logging
import math
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timedelta, timezone

from fastapi import HTTPException

from stock_tracker.core.cache import CacheClient, cache
from stock_tracker.core.config import settings
from stock_tracker.core.errors import FetchError
from stock_tracker.services.providers.base import MarketDataProvider
from stock_tracker.services.providers.wallstreet_odds_provider import WallStreetOddsProvider

logger = logging.getLogger(__name__)

CHART_FIELDS = ("symbol", "date", "open", "high", "low", "close", "volume")
HISTORICAL_FIELDS = ("date", "open", "high", "low", "close", "volume")
INTRADAY_FIELDS = ("timestamp", "open", "high", "low", "close", "volume")
INDEX_FIELDS = (
    "symbol",
    "price",
    "percentChange",
    "priceExtended",
    "percentChangeExtended",
    "open",
    "high",
    "low",
    "volume",
)
HISTORY_WINDOW_DAYS = 7


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _as_number(value) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _as_int(value) -> int | None:
    number = _as_number(value)
    return int(number) if number is not None else None


def _present_number(value) -> float | None:
    # Upstream sends "" or 0 for fields it has no data for.
    return _as_number(value) if value else None


def _parse_timestamp(value) -> datetime | None:
    """Epoch milliseconds (number or numeric string) or an ISO-8601 date string."""
    millis = _as_number(value)
    if millis is not None:
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _iso_z(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class MarketDataService:
    """Reshapes upstream market data into the payloads the front-end charts expect."""

    def __init__(
        self,
        provider: MarketDataProvider,
        cache_client: CacheClient | None = None,
        ttl_seconds: int = 30,
        major_indices: list[str] | None = None,
    ) -> None:
        self.provider = provider
        self.cache = cache_client
        self.ttl_seconds = ttl_seconds
        self.index_symbols = major_indices or []

    async def _cached(self, key: str, error: str, producer: Callable[[], Awaitable]):
        try:
            if self.cache is None:
                return await producer()
            return await self.cache.remember(key, producer, ttl_seconds=self.ttl_seconds)
        except FetchError as exc:
            logger.error("%s: %s", error, exc)
            raise HTTPException(status_code=502, detail={"error": error, "details": str(exc)}) from exc

    async def stock_chart(self, symbol: str = "AAPL") -> list[dict]:
        end = _today()
        start = end - timedelta(days=HISTORY_WINDOW_DAYS)

        async def produce() -> list[dict]:
            rows = await self.provider.get_historic_prices(symbol, start, end, CHART_FIELDS)
            return [
                {
                    "date": row.get("date"),
                    "price": row.get("close"),
                    "open": row.get("open"),
                    "high": row.get("high"),
                    "low": row.get("low"),
                    "volume": row.get("volume"),
                }
                for row in rows
            ]

        return await self._cached(f"chart:{symbol.upper()}:{end}", "Failed to fetch stock data", produce)

    async def intraday(
        self,
        symbol: str = "AAPL",
        interval: str = "15min",
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[dict]:
        end = end_date or _today()
        start = start_date or end - timedelta(days=1)

        async def produce() -> list[dict]:
            rows = await self.provider.get_intraday(symbol, interval, start, end, INTRADAY_FIELDS)
            dated = []
            for row in rows:
                if not row.get("timestamp") or not row.get("close"):
                    continue
                moment = _parse_timestamp(row["timestamp"])
                if moment is None:
                    logger.warning("Dropping %s intraday row with unreadable timestamp %r", symbol, row["timestamp"])
                    continue
                dated.append(
                    (
                        moment,
                        {
                            "time": _iso_z(moment),
                            "timestamp": row["timestamp"],
                            "open": _as_number(row.get("open")),
                            "high": _as_number(row.get("high")),
                            "low": _as_number(row.get("low")),
                            "price": _as_number(row.get("close")),
                            "volume": _as_int(row.get("volume")),
                        },
                    )
                )
            dated.sort(key=lambda item: item[0])
            return [point for _, point in dated]

        key = f"intraday:{symbol.upper()}:{interval}:{start}:{end}"
        return await self._cached(key, "Failed to fetch intraday data", produce)

    async def major_indices(self) -> dict:
        symbols = list(self.index_symbols)

        async def produce() -> dict:
            rows = await self.provider.get_live_prices(symbols, INDEX_FIELDS)
            by_symbol = {row.get("symbol"): row for row in rows if isinstance(row, dict)}
            data = []
            for symbol in symbols:
                quote = by_symbol.get(symbol, {})
                data.append(
                    {
                        "name": symbol,
                        "symbol": symbol,
                        "price": _present_number(quote.get("price")),
                        "changePercent": _present_number(quote.get("percentchange")),
                        "priceExtended": _present_number(quote.get("priceextended")),
                        "percentChangeExtended": _present_number(quote.get("percentchangeextended")),
                        "open": _present_number(quote.get("open")),
                        "high": _present_number(quote.get("high")),
                        "low": _present_number(quote.get("low")),
                        "volume": _present_number(quote.get("volume")),
                    }
                )
            return {"success": True, "data": data}

        return await self._cached(f"indices:{','.join(symbols)}", "Failed to fetch indices data", produce)

    async def historical(self, symbol: str = "AAPL") -> dict:
        end = _today()
        start = end - timedelta(days=HISTORY_WINDOW_DAYS)

        async def produce() -> dict:
            rows = await self.provider.get_historic_prices(symbol, start, end, HISTORICAL_FIELDS)
            data = [
                {
                    "date": row.get("date"),
                    "open": _as_number(row.get("open")),
                    "high": _as_number(row.get("high")),
                    "low": _as_number(row.get("low")),
                    "close": _as_number(row.get("close")),
                    "volume": _as_number(row.get("volume")),
                }
                for row in rows
            ]
            return {"success": True, "data": data}

        return await self._cached(f"historical:{symbol.upper()}:{end}", "Failed to fetch historical data", produce)


market_data_service = MarketDataService(
    WallStreetOddsProvider.from_settings(settings),
    cache_client=cache,
    ttl_seconds=settings.market_cache_ttl_seconds,
    major_indices=settings.major_index_symbols,
)
