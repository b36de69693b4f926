"""Strategy data models — typed representations for candles, snapshots and signals."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterator, Optional, Union, overload

import pandas as pd


# ── Enumerations ─────────────────────────────────────────────────────────


class SignalType(Enum):
    """Direction of a trading signal."""

    BUY = "BUY"
    SELL = "SELL"
    STRONG_BUY = "STRONG_BUY"
    STRONG_SELL = "STRONG_SELL"
    HOLD = "HOLD"
    NEUTRAL = "NEUTRAL"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")

    @classmethod
    def from_label(cls, text: str) -> "SignalType":
        """Parse a display label; unknown text maps to ``NEUTRAL``."""
        for member in cls:
            if member.label == text or member.value == text:
                return member
        return cls.NEUTRAL

    @property
    def is_bullish(self) -> bool:
        return self in (SignalType.BUY, SignalType.STRONG_BUY)

    @property
    def is_bearish(self) -> bool:
        return self in (SignalType.SELL, SignalType.STRONG_SELL)


class SignalStrength(Enum):
    """How strongly a signal should be weighted when ranking."""

    WEAK = "WEAK"
    MODERATE = "MODERATE"
    STRONG = "STRONG"
    VERY_STRONG = "VERY_STRONG"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")

    @property
    def multiplier(self) -> float:
        """Score multiplier applied by signal ranking."""
        return _STRENGTH_MULTIPLIERS[self]

    @classmethod
    def from_label(cls, text: str) -> "SignalStrength":
        """Parse a display label; unknown text maps to ``WEAK``."""
        for member in cls:
            if member.label == text or member.value == text:
                return member
        return cls.WEAK

    @classmethod
    def from_confidence(cls, confidence: float) -> "SignalStrength":
        """Bucket a confidence in [0, 1] into a strength level."""
        if confidence >= 0.85:
            return cls.VERY_STRONG
        if confidence >= 0.7:
            return cls.STRONG
        if confidence >= 0.55:
            return cls.MODERATE
        return cls.WEAK


_STRENGTH_MULTIPLIERS: dict[SignalStrength, float] = {
    SignalStrength.WEAK: 0.9,
    SignalStrength.MODERATE: 1.0,
    SignalStrength.STRONG: 1.1,
    SignalStrength.VERY_STRONG: 1.2,
}


class StrategyType(Enum):
    """Family of strategy that produced a signal."""

    ORB = "ORB"
    VWAP = "VWAP"
    MA_CROSSOVER = "MA_CROSSOVER"
    RSI = "RSI"
    BOLLINGER = "BOLLINGER"
    BREAKOUT = "BREAKOUT"
    SUPPORT_RESISTANCE = "SUPPORT_RESISTANCE"
    MOMENTUM = "MOMENTUM"
    VOLUME_SPIKE = "VOLUME_SPIKE"
    REVERSAL = "REVERSAL"

    @property
    def label(self) -> str:
        return _STRATEGY_LABELS[self]

    @classmethod
    def from_label(cls, text: str) -> "StrategyType":
        """Parse a display label or enum value; unknown text maps to ``ORB``."""
        for member in cls:
            if member.label == text or member.value == text:
                return member
        return cls.ORB


_STRATEGY_LABELS: dict[StrategyType, str] = {
    StrategyType.ORB: "ORB",
    StrategyType.VWAP: "VWAP",
    StrategyType.MA_CROSSOVER: "MA Crossover",
    StrategyType.RSI: "RSI",
    StrategyType.BOLLINGER: "Bollinger Bands",
    StrategyType.BREAKOUT: "Breakout",
    StrategyType.SUPPORT_RESISTANCE: "Support/Resistance",
    StrategyType.MOMENTUM: "Momentum",
    StrategyType.VOLUME_SPIKE: "Volume Spike",
    StrategyType.REVERSAL: "Reversal",
}


# ── Market data ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CandleData:
    """A single OHLCV bar."""

    time: str
    open: float
    high: float
    low: float
    close: float
    volume: int


_FRAME_COLUMNS = ["time", "open", "high", "low", "close", "volume"]


@dataclass(frozen=True)
class CandleSeries:
    """Time-ascending OHLCV history for one symbol.

    Built once per fetch cycle by the data layer and never mutated; the
    next fetch replaces it wholesale.
    """

    symbol: str
    candles: tuple[CandleData, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.candles, tuple):
            object.__setattr__(self, "candles", tuple(self.candles))

    def __len__(self) -> int:
        return len(self.candles)

    def __iter__(self) -> Iterator[CandleData]:
        return iter(self.candles)

    @overload
    def __getitem__(self, index: int) -> CandleData: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[CandleData, ...]: ...

    def __getitem__(self, index: Union[int, slice]):
        return self.candles[index]

    @property
    def last(self) -> Optional[CandleData]:
        return self.candles[-1] if self.candles else None

    @classmethod
    def from_frame(cls, symbol: str, df: pd.DataFrame) -> "CandleSeries":
        """Build a series from a DataFrame with OHLCV columns.

        Rows are sorted by ``time`` so callers may pass unordered frames.
        """
        missing = [c for c in _FRAME_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Candle frame missing column(s): {', '.join(missing)}")

        frame = df.sort_values("time", kind="stable")
        candles = tuple(
            CandleData(
                time=str(row.time),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=int(row.volume),
            )
            for row in frame.itertuples(index=False)
        )
        return cls(symbol=symbol, candles=candles)

    def to_frame(self) -> pd.DataFrame:
        """Return the series as a DataFrame (one row per bar)."""
        return pd.DataFrame(
            [
                (c.time, c.open, c.high, c.low, c.close, c.volume)
                for c in self.candles
            ],
            columns=_FRAME_COLUMNS,
        )


@dataclass(frozen=True)
class Quote:
    """Raw latest-quote snapshot as delivered by the data layer."""

    symbol: str
    price: float
    previous_close: float = 0.0
    day_high: float = 0.0
    day_low: float = 0.0
    volume: int = 0
    avg_volume: int = 0
    market_cap: float = 0.0
    change: Optional[float] = None
    change_percent: Optional[float] = None
    name: str = ""


@dataclass(frozen=True)
class EnrichedSnapshot:
    """Quote plus the fixed indicator set and derived pattern flags.

    Recomputed from scratch on every fetch cycle.
    """

    symbol: str
    current_price: float
    previous_close: float = 0.0
    change: float = 0.0
    change_percent: float = 0.0
    volume: int = 0
    avg_volume: int = 0
    volume_ratio: float = 1.0
    day_high: float = 0.0
    day_low: float = 0.0
    market_cap: float = 0.0
    name: str = ""

    rsi_14: float = 50.0
    sma_20: float = 0.0
    sma_50: float = 0.0
    ema_9: float = 0.0
    ema_21: float = 0.0
    vwap: float = 0.0
    atr_14: float = 0.0
    bollinger_upper: float = 0.0
    bollinger_lower: float = 0.0
    support_level: float = 0.0
    resistance_level: float = 0.0

    is_breakout: bool = False
    is_breakdown: bool = False
    volume_spike: bool = False
    near_support: bool = False
    near_resistance: bool = False


# ── Strategy outputs ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Signal:
    """A raw signal emitted by one strategy for one symbol.

    Strategies fill in direction, levels and confidence.  The engine then
    stamps symbol, timestamps and the derived metrics exactly once (via
    ``dataclasses.replace``).
    """

    signal_type: SignalType
    strategy: StrategyType
    confidence: float
    symbol: str = ""
    strength: SignalStrength = SignalStrength.WEAK
    entry_price: float = 0.0
    stop_loss: float = 0.0
    target_1: float = 0.0
    target_2: float = 0.0
    description: str = ""
    entry_reason: str = ""
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    volume_confirmation: float = 0.0
    technical_score: float = 0.0
    breakout_confirmed: bool = False
    volume_above_average: bool = False


@dataclass(frozen=True)
class TradeSetup:
    """Combined, risk-annotated recommendation for one symbol."""

    symbol: str
    primary_signal: SignalType
    supporting_signals: tuple[Signal, ...]
    recommended_entry: float
    stop_loss: float
    target_1: float
    target_2: float
    risk_amount: float
    potential_reward: float
    risk_reward_ratio: float
    technical_confluence: int
    overall_confidence: float
    setup_name: str = ""
    volume_confirmation: bool = False
    trend_alignment: bool = False
    best_entry_time: str = ""
    validity_minutes: int = 30
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    def is_active(self, now: datetime) -> bool:
        """``True`` while *now* is within the setup's validity window."""
        if self.expires_at is None:
            return True
        return now <= self.expires_at


@dataclass(frozen=True)
class SignalPerformance:
    """Aggregate outcome statistics for one strategy type."""

    strategy: StrategyType
    total_signals: int = 0
    successful_signals: int = 0
    win_rate: float = 0.0
    average_return: float = 0.0
    max_return: float = 0.0
    min_return: float = 0.0
    average_holding_time_minutes: float = 0.0


@dataclass(frozen=True)
class StrategyFailure:
    """One strategy raising while analysing one symbol."""

    symbol: str
    strategy: str
    error: str


@dataclass(frozen=True)
class BatchResult:
    """Output of one multi-symbol engine pass."""

    setups: tuple[TradeSetup, ...] = ()
    signals: dict[str, list[Signal]] = field(default_factory=dict)
    failures: tuple[StrategyFailure, ...] = ()
    missing_history: tuple[str, ...] = ()

    @property
    def degraded_symbols(self) -> list[str]:
        """Symbols where at least one strategy failed, in first-seen order."""
        seen: list[str] = []
        for f in self.failures:
            if f.symbol not in seen:
                seen.append(f.symbol)
        return seen

    @property
    def all_signals(self) -> list[Signal]:
        """Every retained signal across the batch, in symbol order."""
        return [s for sigs in self.signals.values() for s in sigs]

