from __future__ import annotations

import math

from stock_tracker.core.errors import EvaluationError
from stock_tracker.schemas.alert import AlertCondition

# Tolerance around the threshold so float noise exactly at the level never fires.
PRICE_BUFFER = 0.0001


def _finite(value, label: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise EvaluationError(f"{label} is not a number: {value!r}") from exc
    if not math.isfinite(number):
        raise EvaluationError(f"{label} is not finite: {value!r}")
    return number


def evaluate(current_price: float, threshold: float, condition: AlertCondition | str) -> bool:
    """Return True when ``current_price`` has crossed ``threshold`` in the alert's direction.

    ``above`` fires strictly beyond ``threshold + PRICE_BUFFER``, ``below`` strictly
    under ``threshold - PRICE_BUFFER``. Raises EvaluationError for an unknown
    condition or a non-numeric price/threshold.
    """
    try:
        direction = AlertCondition(condition)
    except ValueError as exc:
        raise EvaluationError(f"Unknown alert condition: {condition!r}") from exc

    price = _finite(current_price, "current price")
    level = _finite(threshold, "threshold")

    if direction is AlertCondition.ABOVE:
        return price > level + PRICE_BUFFER
    return price < level - PRICE_BUFFER
