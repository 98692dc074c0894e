from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ChartPoint(BaseModel):
    date: Any = None
    price: Any = None
    open: Any = None
    high: Any = None
    low: Any = None
    volume: Any = None


class IntradayPoint(BaseModel):
    time: str
    timestamp: Any
    open: float | None = None
    high: float | None = None
    low: float | None = None
    price: float | None = None
    volume: int | None = None


class IndexQuote(BaseModel):
    name: str
    symbol: str
    price: float | None = None
    changePercent: float | None = None
    priceExtended: float | None = None
    percentChangeExtended: float | None = None
    open: float | None = None
    high: float | None = None
    low: float | None = None
    volume: float | None = None


class HistoricalBar(BaseModel):
    date: Any = None
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = None
    volume: float | None = None


class IndicesResponse(BaseModel):
    success: bool = True
    data: list[IndexQuote]


class HistoricalResponse(BaseModel):
    success: bool = True
    data: list[HistoricalBar]
