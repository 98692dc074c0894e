from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date

ALL_SYMBOLS = "allsymbols"


class MarketDataProvider(ABC):
    name: str

    @abstractmethod
    async def get_live_prices(self, symbols: Sequence[str] | str, fields: Sequence[str]) -> list[dict]:
        raise NotImplementedError

    @abstractmethod
    async def get_historic_prices(self, symbol: str, start: date, end: date, fields: Sequence[str]) -> list[dict]:
        raise NotImplementedError

    @abstractmethod
    async def get_intraday(
        self,
        symbol: str,
        interval: str,
        start: date,
        end: date,
        fields: Sequence[str],
    ) -> list[dict]:
        raise NotImplementedError
