from __future__ import annotations

from fastapi import HTTPException, Request

from stock_tracker.core.database import SessionLocal
from stock_tracker.services.alert_store import AlertStore
from stock_tracker.services.market_data_service import MarketDataService, market_data_service
from stock_tracker.services.scheduler import AlertScheduler


def get_alert_store() -> AlertStore:
    return AlertStore(SessionLocal)


def get_market_data_service() -> MarketDataService:
    return market_data_service


def get_scheduler(request: Request) -> AlertScheduler:
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Alert scheduler not running")
    return scheduler
