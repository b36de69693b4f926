"""Risk:reward calculation — pure math, no I/O."""

import math


def calculate_risk_reward(entry_price: float, stop_loss: float, target: float) -> float:
    """Return ``|target − entry| / |entry − stop|``.

    Returns 0.0 (never NaN or infinity) when any level is non-positive or
    non-finite, or when entry equals stop.
    """
    levels = (entry_price, stop_loss, target)
    if not all(math.isfinite(v) and v > 0 for v in levels):
        return 0.0
    risk = abs(entry_price - stop_loss)
    if risk == 0:
        return 0.0
    return abs(target - entry_price) / risk
