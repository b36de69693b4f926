"""Technical indicators — SMA, EMA, WMA, RSI, ATR, Bollinger, VWAP, MACD, S/R. Pure functions, no I/O.

Every function degrades to a documented neutral default when the input is
shorter than the window it needs; callers treat those defaults as
"indicator unavailable".  Nothing in this module raises on short input.
"""

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from tradescan.strategy.models import CandleData


@dataclass(frozen=True)
class BollingerBands:
    upper: float = 0.0
    middle: float = 0.0
    lower: float = 0.0


@dataclass(frozen=True)
class MACDResult:
    macd_line: float = 0.0
    signal_line: float = 0.0
    histogram: float = 0.0


@dataclass(frozen=True)
class StochasticResult:
    k: float = 50.0
    d: float = 50.0


@dataclass(frozen=True)
class PivotPoints:
    pivot: float = 0.0
    r1: float = 0.0
    r2: float = 0.0
    s1: float = 0.0
    s2: float = 0.0


def _closes(candles: Sequence[CandleData]) -> np.ndarray:
    return np.array([c.close for c in candles], dtype=float)


def _insufficient(candles: Sequence[CandleData], needed: int, period: int) -> bool:
    return period <= 0 or len(candles) < needed


# ── Building blocks ──────────────────────────────────────────────────────


def true_range(current: CandleData, previous: CandleData) -> float:
    """``max(high - low, |high - prev_close|, |low - prev_close|)``."""
    return max(
        current.high - current.low,
        abs(current.high - previous.close),
        abs(current.low - previous.close),
    )


def typical_price(candle: CandleData) -> float:
    return (candle.high + candle.low + candle.close) / 3.0


def calculate_returns(candles: Sequence[CandleData]) -> list[float]:
    """Simple close-to-close returns.  Bars following a zero close yield 0."""
    if len(candles) < 2:
        return []
    closes = _closes(candles)
    prev = closes[:-1]
    diff = np.diff(closes)
    out = np.divide(diff, prev, out=np.zeros_like(diff), where=prev != 0)
    return [float(r) for r in out]


# ── Moving averages ──────────────────────────────────────────────────────


def calculate_sma(candles: Sequence[CandleData], period: int) -> float:
    """Arithmetic mean of the last *period* closes.  0.0 when unavailable."""
    if _insufficient(candles, period, period):
        return 0.0
    return float(np.mean(_closes(candles[-period:])))


def calculate_ema_series(candles: Sequence[CandleData], period: int) -> list[float]:
    """Full Exponential Moving Average series.

    ``EMA_today = close × k + EMA_yesterday × (1 - k)`` with
    ``k = 2 / (period + 1)``, seeded with the SMA of the first *period*
    closes.  Entries before the seed are ``nan``; if there are fewer than
    *period* candles every entry is ``nan``.
    """
    n = len(candles)
    ema: list[float] = [float("nan")] * n
    if _insufficient(candles, period, period):
        return ema

    k = 2.0 / (period + 1)
    closes = [c.close for c in candles]
    ema[period - 1] = sum(closes[:period]) / period
    for i in range(period, n):
        ema[i] = closes[i] * k + ema[i - 1] * (1 - k)
    return ema


def calculate_ema(candles: Sequence[CandleData], period: int) -> float:
    """Latest EMA value.  0.0 when unavailable."""
    if _insufficient(candles, period, period):
        return 0.0
    return calculate_ema_series(candles, period)[-1]


def calculate_wma(candles: Sequence[CandleData], period: int) -> float:
    """Linearly weighted mean of the last *period* closes.

    The most recent bar has weight *period*, the oldest weight 1.
    """
    if _insufficient(candles, period, period):
        return 0.0
    window = _closes(candles[-period:])
    weights = np.arange(1, period + 1, dtype=float)
    return float(np.dot(window, weights) / weights.sum())


# ── Oscillators ──────────────────────────────────────────────────────────


def _wilder(values: Sequence[float], period: int) -> float:
    """Seed with the mean of the first *period* values, then Wilder-smooth."""
    avg = sum(values[:period]) / period
    for v in values[period:]:
        avg = (avg * (period - 1) + v) / period
    return avg


def calculate_rsi(candles: Sequence[CandleData], period: int = 14) -> float:
    """Wilder's Relative Strength Index of the latest bar.

    Algorithm:
        1. delta = close[i] - close[i-1]
        2. Seed average gain/loss = plain mean of the first *period* deltas.
        3. Subsequent: avg = (prev_avg × (period-1) + current) / period
        4. RSI = 100 when avg_loss == 0, else 100 - 100 / (1 + gain/loss)

    Requires ``period + 1`` candles; returns 50.0 otherwise.  The result
    is always within [0, 100].
    """
    if _insufficient(candles, period + 1, period):
        return 50.0

    closes = [c.close for c in candles]
    deltas = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    avg_gain = _wilder([max(d, 0.0) for d in deltas], period)
    avg_loss = _wilder([max(-d, 0.0) for d in deltas], period)

    if avg_loss == 0:
        rsi = 100.0
    else:
        rsi = 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)

    if not math.isfinite(rsi):
        return 50.0
    return min(100.0, max(0.0, rsi))


def calculate_stochastic(
    candles: Sequence[CandleData],
    k_period: int = 14,
    d_period: int = 3,
) -> StochasticResult:
    """Stochastic oscillator %K of the latest bar and %D (SMA of %K).

    A flat window (highest high == lowest low) reads as 50.  Returns
    ``StochasticResult(50, 50)`` when fewer than
    ``k_period + d_period - 1`` candles are available.
    """
    if d_period <= 0 or _insufficient(candles, k_period + d_period - 1, k_period):
        return StochasticResult()

    k_values: list[float] = []
    for end in range(len(candles) - d_period + 1, len(candles) + 1):
        window = candles[end - k_period:end]
        hh = max(c.high for c in window)
        ll = min(c.low for c in window)
        span = hh - ll
        k_values.append(50.0 if span == 0 else 100.0 * (window[-1].close - ll) / span)

    return StochasticResult(k=k_values[-1], d=sum(k_values) / len(k_values))


def calculate_williams_r(candles: Sequence[CandleData], period: int = 14) -> float:
    """Williams %R in [-100, 0].  -50.0 when unavailable or flat."""
    if _insufficient(candles, period, period):
        return -50.0
    window = candles[-period:]
    hh = max(c.high for c in window)
    ll = min(c.low for c in window)
    if hh == ll:
        return -50.0
    return -100.0 * (hh - window[-1].close) / (hh - ll)


# ── Volatility ───────────────────────────────────────────────────────────


def calculate_atr(candles: Sequence[CandleData], period: int = 14) -> float:
    """Average True Range, Wilder-smoothed.

    Seeds with the plain mean of the first *period* true ranges and then
    smooths forward identically to RSI.  Requires ``period + 1`` candles
    (each TR needs a previous close); returns 0.0 otherwise.
    """
    if _insufficient(candles, period + 1, period):
        return 0.0
    trs = [true_range(candles[i], candles[i - 1]) for i in range(1, len(candles))]
    return _wilder(trs, period)


def calculate_bollinger(
    candles: Sequence[CandleData],
    period: int = 20,
    multiplier: float = 2.0,
) -> BollingerBands:
    """Bollinger Bands of the latest bar.

    Middle = SMA(close, *period*)
    Upper  = middle + *multiplier* × σ
    Lower  = middle − *multiplier* × σ

    σ is the population standard deviation of the last *period* closes.
    """
    if _insufficient(candles, period, period):
        return BollingerBands()
    window = _closes(candles[-period:])
    middle = float(np.mean(window))
    band = multiplier * float(np.std(window))
    return BollingerBands(upper=middle + band, middle=middle, lower=middle - band)


# ── Volume ───────────────────────────────────────────────────────────────


def calculate_vwap(candles: Sequence[CandleData]) -> float:
    """Volume-weighted average of the typical price over the whole series."""
    if not candles:
        return 0.0
    volumes = np.array([c.volume for c in candles], dtype=float)
    total_volume = volumes.sum()
    if total_volume <= 0:
        return 0.0
    typical = np.array([typical_price(c) for c in candles], dtype=float)
    return float(np.dot(typical, volumes) / total_volume)


def calculate_obv(candles: Sequence[CandleData]) -> float:
    """On-Balance Volume accumulated across the series."""
    obv = 0.0
    for prev, cur in zip(candles, candles[1:]):
        if cur.close > prev.close:
            obv += cur.volume
        elif cur.close < prev.close:
            obv -= cur.volume
    return obv


# ── Trend ────────────────────────────────────────────────────────────────


def calculate_macd(
    candles: Sequence[CandleData],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MACDResult:
    """MACD line, signal line and histogram of the latest bar.

    The MACD line history is ``EMA(fast) - EMA(slow)`` across the whole
    series (defined from the slow seed onward).  The signal line is an EMA
    of that history, seeded with the mean of its first *signal_period*
    values.  While the history is shorter than *signal_period* the signal
    line equals the MACD line and the histogram is 0.
    """
    if fast_period <= 0 or signal_period <= 0 or _insufficient(candles, slow_period, slow_period):
        return MACDResult()

    fast = calculate_ema_series(candles, fast_period)
    slow = calculate_ema_series(candles, slow_period)
    history = [f - s for f, s in zip(fast, slow) if not (math.isnan(f) or math.isnan(s))]
    macd_line = history[-1]

    if len(history) < signal_period:
        return MACDResult(macd_line=macd_line, signal_line=macd_line, histogram=0.0)

    k = 2.0 / (signal_period + 1)
    signal_line = sum(history[:signal_period]) / signal_period
    for value in history[signal_period:]:
        signal_line = value * k + signal_line * (1 - k)

    return MACDResult(
        macd_line=macd_line,
        signal_line=signal_line,
        histogram=macd_line - signal_line,
    )


def calculate_adx(candles: Sequence[CandleData], period: int = 14) -> float:
    """Average Directional Index of the latest bar.

    Algorithm:
        1. +DM / -DM directional movement per bar.
        2. Wilder-smooth +DM, -DM, and TR over *period*.
        3. DX = 100 × |+DI − −DI| / (+DI + −DI)
        4. ADX = Wilder-smoothed DX over *period*.

    Requires ``2 × period + 1`` candles; returns 0.0 otherwise.
    """
    if _insufficient(candles, 2 * period + 1, period):
        return 0.0

    plus_dm: list[float] = []
    minus_dm: list[float] = []
    trs: list[float] = []
    for prev, cur in zip(candles, candles[1:]):
        up_move = cur.high - prev.high
        down_move = prev.low - cur.low
        plus_dm.append(up_move if (up_move > down_move and up_move > 0) else 0.0)
        minus_dm.append(down_move if (down_move > up_move and down_move > 0) else 0.0)
        trs.append(true_range(cur, prev))

    def _dx(s_pdm: float, s_mdm: float, s_tr: float) -> float:
        if s_tr == 0:
            return 0.0
        plus_di = 100.0 * s_pdm / s_tr
        minus_di = 100.0 * s_mdm / s_tr
        di_sum = plus_di + minus_di
        if di_sum == 0:
            return 0.0
        return 100.0 * abs(plus_di - minus_di) / di_sum

    s_pdm = sum(plus_dm[:period])
    s_mdm = sum(minus_dm[:period])
    s_tr = sum(trs[:period])
    dx_values = [_dx(s_pdm, s_mdm, s_tr)]
    for i in range(period, len(trs)):
        s_pdm = s_pdm - s_pdm / period + plus_dm[i]
        s_mdm = s_mdm - s_mdm / period + minus_dm[i]
        s_tr = s_tr - s_tr / period + trs[i]
        dx_values.append(_dx(s_pdm, s_mdm, s_tr))

    return _wilder(dx_values, period)


# ── Support / resistance ─────────────────────────────────────────────────


def find_support(candles: Sequence[CandleData], lookback: int = 20) -> float:
    """Lowest low of the last *lookback* bars.  0.0 when unavailable."""
    if _insufficient(candles, lookback, lookback):
        return 0.0
    return float(min(c.low for c in candles[-lookback:]))


def find_resistance(candles: Sequence[CandleData], lookback: int = 20) -> float:
    """Highest high of the last *lookback* bars.  0.0 when unavailable."""
    if _insufficient(candles, lookback, lookback):
        return 0.0
    return float(max(c.high for c in candles[-lookback:]))


def find_pivot_points(candles: Sequence[CandleData]) -> PivotPoints:
    """Classic floor-trader pivots from the latest completed bar."""
    if not candles:
        return PivotPoints()
    bar = candles[-1]
    pivot = typical_price(bar)
    span = bar.high - bar.low
    return PivotPoints(
        pivot=pivot,
        r1=2 * pivot - bar.low,
        r2=pivot + span,
        s1=2 * pivot - bar.high,
        s2=pivot - span,
    )
