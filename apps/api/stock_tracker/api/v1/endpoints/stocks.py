from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from stock_tracker.api.v1.deps import get_market_data_service
from stock_tracker.schemas.stock import ChartPoint, HistoricalResponse, IndicesResponse, IntradayPoint
from stock_tracker.services.market_data_service import MarketDataService

router = APIRouter(tags=["stocks"])


@router.get("/stock", response_model=list[ChartPoint])
async def stock_chart(
    symbol: str = Query(default="AAPL", min_length=1, max_length=16),
    service: MarketDataService = Depends(get_market_data_service),
):
    return await service.stock_chart(symbol)


@router.get("/intraday", response_model=list[IntradayPoint])
async def intraday(
    symbol: str = Query(default="AAPL", min_length=1, max_length=16),
    interval: str = Query(default="15min", max_length=10),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    service: MarketDataService = Depends(get_market_data_service),
):
    return await service.intraday(symbol, interval=interval, start_date=start_date, end_date=end_date)


@router.get("/indiceswallstreet", response_model=IndicesResponse)
async def major_indices(service: MarketDataService = Depends(get_market_data_service)):
    return await service.major_indices()


@router.get("/historical", response_model=HistoricalResponse)
async def historical(
    symbol: str = Query(default="AAPL", min_length=1, max_length=16),
    service: MarketDataService = Depends(get_market_data_service),
):
    return await service.historical(symbol)
