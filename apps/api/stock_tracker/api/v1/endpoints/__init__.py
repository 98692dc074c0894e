from __future__ import annotations

from stock_tracker.api.v1.endpoints import alerts, stocks

__all__ = ["alerts", "stocks"]
