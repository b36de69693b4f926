"""Tests for tradescan.strategy.patterns — candlestick predicates."""

from tradescan.strategy.models import CandleData
from tradescan.strategy.patterns import (
    detect_patterns,
    is_bearish_engulfing,
    is_bullish_engulfing,
    is_doji,
    is_engulfing,
    is_hammer,
    is_shooting_star,
)


def _make_candle(o, h, l, c, volume=1000):
    return CandleData("2025-03-03T09:15:00", o, h, l, c, volume)


class TestSingleBar:
    def test_flat_candle_is_doji_not_hammer_or_star(self):
        flat = _make_candle(50, 50, 50, 50)
        assert is_doji(flat, 0.001) is True
        assert is_hammer(flat) is False
        assert is_shooting_star(flat) is False

    def test_doji_small_body(self):
        assert is_doji(_make_candle(100.0, 105.0, 95.0, 100.005))
        assert not is_doji(_make_candle(100.0, 105.0, 95.0, 102.0))

    def test_hammer(self):
        # body 1, lower shadow 5, upper shadow 0.2
        assert is_hammer(_make_candle(100.0, 101.2, 95.0, 101.0))
        assert not is_shooting_star(_make_candle(100.0, 101.2, 95.0, 101.0))

    def test_shooting_star(self):
        # body 1, upper shadow 5, lower shadow 0.2
        assert is_shooting_star(_make_candle(101.0, 106.0, 99.8, 100.0))
        assert not is_hammer(_make_candle(101.0, 106.0, 99.8, 100.0))


class TestEngulfing:
    def test_bullish_engulfing(self):
        prev = _make_candle(102.0, 102.5, 100.5, 101.0)
        cur = _make_candle(100.5, 103.5, 100.0, 103.0)
        assert is_bullish_engulfing(prev, cur)
        assert not is_bearish_engulfing(prev, cur)
        assert is_engulfing(prev, cur)

    def test_bearish_engulfing(self):
        prev = _make_candle(101.0, 102.5, 100.5, 102.0)
        cur = _make_candle(102.5, 103.0, 99.5, 100.0)
        assert is_bearish_engulfing(prev, cur)
        assert not is_bullish_engulfing(prev, cur)

    def test_equal_bodies_do_not_engulf(self):
        prev = _make_candle(102.0, 102.5, 100.5, 101.0)
        cur = _make_candle(101.0, 102.5, 100.5, 102.0)
        assert not is_engulfing(prev, cur)


class TestDetectPatterns:
    def test_empty_series(self):
        patterns = detect_patterns([])
        assert not any(vars(patterns).values())

    def test_single_bar_has_no_engulfing(self):
        patterns = detect_patterns([_make_candle(50, 50, 50, 50)])
        assert patterns.doji is True
        assert patterns.bullish_engulfing is False

    def test_uses_last_two_bars(self):
        candles = [
            _make_candle(50, 51, 49, 50.5),
            _make_candle(102.0, 102.5, 100.5, 101.0),
            _make_candle(100.5, 103.5, 100.0, 103.0),
        ]
        assert detect_patterns(candles).bullish_engulfing is True
