"""Candlestick pattern predicates — pure functions on one or two bars.

All predicates tolerate zero-range candles without dividing by zero.
"""

from dataclasses import dataclass
from typing import Sequence

from tradescan.strategy.models import CandleData


DEFAULT_DOJI_THRESHOLD = 0.001


def _body(candle: CandleData) -> float:
    return abs(candle.close - candle.open)


def _upper_shadow(candle: CandleData) -> float:
    return candle.high - max(candle.open, candle.close)


def _lower_shadow(candle: CandleData) -> float:
    return min(candle.open, candle.close) - candle.low


def is_doji(candle: CandleData, threshold: float = DEFAULT_DOJI_THRESHOLD) -> bool:
    """Body is less than *threshold* of the full high-low range.

    A zero-range bar has no body either, so it counts as a doji instead
    of being rejected for lacking a range; the ratio is never computed
    for it.
    """
    full_range = candle.high - candle.low
    if full_range <= 0:
        return _body(candle) == 0
    return _body(candle) / full_range < threshold


def is_hammer(candle: CandleData) -> bool:
    """Long lower shadow (> 2 × body) and short upper shadow (< 0.5 × body)."""
    body = _body(candle)
    return _lower_shadow(candle) > 2 * body and _upper_shadow(candle) < 0.5 * body


def is_shooting_star(candle: CandleData) -> bool:
    """Mirror of the hammer: long upper shadow, short lower shadow."""
    body = _body(candle)
    return _upper_shadow(candle) > 2 * body and _lower_shadow(candle) < 0.5 * body


def is_bullish_engulfing(prev: CandleData, current: CandleData) -> bool:
    """Bearish bar followed by a bullish bar whose body swallows it."""
    if not (prev.close < prev.open and current.close > current.open):
        return False
    return current.open < prev.close and current.close > prev.open


def is_bearish_engulfing(prev: CandleData, current: CandleData) -> bool:
    """Bullish bar followed by a bearish bar whose body swallows it."""
    if not (prev.close > prev.open and current.close < current.open):
        return False
    return current.open > prev.close and current.close < prev.open


def is_engulfing(prev: CandleData, current: CandleData) -> bool:
    return is_bullish_engulfing(prev, current) or is_bearish_engulfing(prev, current)


@dataclass(frozen=True)
class CandlePatterns:
    """Pattern flags for the latest bar of a series."""

    doji: bool = False
    hammer: bool = False
    shooting_star: bool = False
    bullish_engulfing: bool = False
    bearish_engulfing: bool = False


def detect_patterns(
    candles: Sequence[CandleData],
    doji_threshold: float = DEFAULT_DOJI_THRESHOLD,
) -> CandlePatterns:
    """Evaluate every predicate on the last bar (and the one before it)."""
    if not candles:
        return CandlePatterns()

    last = candles[-1]
    prev = candles[-2] if len(candles) >= 2 else None
    return CandlePatterns(
        doji=is_doji(last, doji_threshold),
        hammer=is_hammer(last),
        shooting_star=is_shooting_star(last),
        bullish_engulfing=prev is not None and is_bullish_engulfing(prev, last),
        bearish_engulfing=prev is not None and is_bearish_engulfing(prev, last),
    )
