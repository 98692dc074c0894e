from __future__ import annotations

from fastapi import APIRouter

from stock_tracker.api.v1.endpoints import alerts, stocks

api_router = APIRouter()
api_router.include_router(stocks.router)
api_router.include_router(alerts.router)
