from __future__ import annotations

from stock_tracker.models.alert import Alert

__all__ = ["Alert"]
