"""Position sizing — pure math, no I/O.

Calculates the number of whole shares to buy or sell from account size,
risk percentage and the entry-to-stop distance.
"""

import math


def calculate_position_size(
    account_size: float,
    risk_pct: float,
    entry_price: float,
    stop_loss: float,
) -> int:
    """Calculate position size in shares.

    Formula::

        risk_amount     = account_size × (risk_pct / 100)
        risk_per_share  = |entry_price − stop_loss|
        shares          = floor(risk_amount / risk_per_share)

    Args:
        account_size: Capital available for the trade (e.g. 100_000.0).
        risk_pct: Percentage of capital to risk per trade (e.g. 1.0 for 1 %).
        entry_price: Planned entry price.
        stop_loss: Planned stop-loss price.

    Returns:
        Number of shares, or 0 when any input is non-positive, non-finite,
        or the entry equals the stop.
    """
    values = (account_size, risk_pct, entry_price, stop_loss)
    if not all(math.isfinite(v) and v > 0 for v in values):
        return 0
    risk_per_share = abs(entry_price - stop_loss)
    if risk_per_share == 0:
        return 0
    risk_amount = account_size * (risk_pct / 100.0)
    return int(math.floor(risk_amount / risk_per_share))
