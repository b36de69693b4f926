"""Signal utilities — scoring, validation, expiry and ranking.

All functions are pure.  Time-dependent helpers take ``now`` explicitly,
defaulting to the current UTC time.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from tradescan.risk.risk_reward import calculate_risk_reward
from tradescan.strategy.models import Signal


MAX_SCORE = 100.0


def calculate_signal_score(signal: Signal) -> float:
    """Composite 0–100 ranking score.

    ::

        confidence × 40
      + technical_score × 20
      + volume_confirmation × 15     (only if volume above average)
      + 10                           (only if breakout confirmed)
      + min(15, risk_reward × 3)
      × strength multiplier, capped at 100
    """
    score = signal.confidence * 40
    score += signal.technical_score * 20
    if signal.volume_above_average:
        score += signal.volume_confirmation * 15
    if signal.breakout_confirmed:
        score += 10

    rr = calculate_risk_reward(signal.entry_price, signal.stop_loss, signal.target_1)
    if rr > 0:
        score += min(15.0, rr * 3)

    return min(MAX_SCORE, score * signal.strength.multiplier)


def is_valid_signal(signal: Signal) -> bool:
    """Check that a signal's levels are internally consistent.

    Stops must sit on the loss side of the entry and, when set,
    ``target_1`` on the profit side.  Non-directional signals only need
    positive levels and a confidence in [0, 1].
    """
    if not signal.symbol:
        return False
    if signal.entry_price <= 0 or signal.stop_loss <= 0:
        return False
    if not 0.0 <= signal.confidence <= 1.0:
        return False

    bullish = signal.signal_type.is_bullish
    bearish = signal.signal_type.is_bearish
    if bullish and signal.stop_loss >= signal.entry_price:
        return False
    if bearish and signal.stop_loss <= signal.entry_price:
        return False

    if signal.target_1 > 0:
        if bullish and signal.target_1 <= signal.entry_price:
            return False
        if bearish and signal.target_1 >= signal.entry_price:
            return False
    return True


def _now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def is_signal_active(signal: Signal, now: Optional[datetime] = None) -> bool:
    """A signal without an expiry never expires."""
    if signal.expires_at is None:
        return True
    return _now(now) <= signal.expires_at


def minutes_until_expiry(signal: Signal, now: Optional[datetime] = None) -> int:
    """Whole minutes left before expiry; 0 once expired or if never stamped."""
    if signal.expires_at is None:
        return 0
    remaining = signal.expires_at - _now(now)
    if remaining.total_seconds() <= 0:
        return 0
    return int(remaining.total_seconds() // 60)


def rank_signals_by_score(signals: Iterable[Signal]) -> list[Signal]:
    """Highest score first; equal scores keep their input order."""
    return sorted(signals, key=calculate_signal_score, reverse=True)


def filter_signals_by_confidence(
    signals: Iterable[Signal],
    min_confidence: float = 0.6,
) -> list[Signal]:
    return [s for s in signals if s.confidence >= min_confidence]
