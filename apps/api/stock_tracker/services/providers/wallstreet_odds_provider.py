from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

import httpx

from stock_tracker.core.config import Settings
from stock_tracker.core.errors import FetchError
from stock_tracker.services.providers.base import MarketDataProvider

logger = logging.getLogger(__name__)


class WallStreetOddsProvider(MarketDataProvider):
    name = "wallstreet_odds"

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://www.wallstreetoddsapi.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "WallStreetOddsProvider":
        return cls(
            api_key=settings.ws_odds_api_key,
            base_url=settings.ws_odds_base_url,
            timeout=settings.upstream_timeout_seconds,
        )

    def _ready(self) -> bool:
        return bool(self.api_key)

    async def _get(self, path: str, params: dict) -> list[dict]:
        if not self._ready():
            raise FetchError("WallStreetOdds API key missing")

        query = {**params, "apikey": self.api_key, "format": "json"}
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(path, params=query)
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as exc:
            raise FetchError(f"{path} timed out after {self.timeout:g}s") from exc
        except httpx.HTTPStatusError as exc:
            raise FetchError(f"{path} returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"{path} request failed: {exc}") from exc
        except ValueError as exc:
            raise FetchError(f"{path} returned a non-JSON body") from exc

        rows = payload.get("response") if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            raise FetchError(f"Invalid API response structure from {path}")
        logger.debug("%s returned %d rows", path, len(rows))
        return rows

    @staticmethod
    def _join(values: Sequence[str] | str) -> str:
        if isinstance(values, str):
            return values
        return ",".join(values)

    async def get_live_prices(self, symbols: Sequence[str] | str, fields: Sequence[str]) -> list[dict]:
        return await self._get(
            "/api/livestockprices",
            {"symbols": self._join(symbols), "fields": self._join(fields)},
        )

    async def get_historic_prices(self, symbol: str, start: date, end: date, fields: Sequence[str]) -> list[dict]:
        return await self._get(
            "/api/historicstockprices",
            {
                "symbol": symbol,
                "from": start.isoformat(),
                "to": end.isoformat(),
                "fields": self._join(fields),
            },
        )

    async def get_intraday(
        self,
        symbol: str,
        interval: str,
        start: date,
        end: date,
        fields: Sequence[str],
    ) -> list[dict]:
        return await self._get(
            "/api/intraday",
            {
                "symbol": symbol.upper(),
                "interval": interval,
                "from": start.isoformat(),
                "to": end.isoformat(),
                "fields": self._join(fields),
            },
        )
