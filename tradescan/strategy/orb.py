"""Opening Range Breakout strategy — trades a break of the first bars' range.

The opening range is the high/low of the first few bars of the supplied
series.  A current price above the range high is a BUY at the range high;
below the range low is a SELL at the range low.
"""

from dataclasses import dataclass
from typing import Sequence

from tradescan.strategy.models import (
    CandleData,
    EnrichedSnapshot,
    Signal,
    SignalStrength,
    SignalType,
    StrategyType,
)


@dataclass(frozen=True)
class ORBParams:
    min_volume_ratio: float = 1.2
    min_price: float = 100.0
    opening_bars: int = 5
    target_multiple: float = 1.5
    target_2_multiple: float = 3.0
    base_confidence: float = 0.5
    high_volume_ratio: float = 1.5
    volume_bonus: float = 0.2
    min_range_pct: float = 0.02
    range_bonus: float = 0.1
    max_confidence: float = 0.9
    min_confidence: float = 0.6


@dataclass(frozen=True)
class ORBLevels:
    """High, low and size of the opening range."""

    orb_high: float = 0.0
    orb_low: float = 0.0
    range_size: float = 0.0

    @property
    def is_valid(self) -> bool:
        return self.range_size > 0


def calculate_orb_levels(candles: Sequence[CandleData], opening_bars: int = 5) -> ORBLevels:
    """Opening range from the first *opening_bars* candles.

    Returns an invalid (all-zero) range when fewer bars are available.
    """
    if opening_bars <= 0 or len(candles) < opening_bars:
        return ORBLevels()
    opening = candles[:opening_bars]
    high = max(c.high for c in opening)
    low = min(c.low for c in opening)
    return ORBLevels(orb_high=high, orb_low=low, range_size=high - low)


class OpeningRangeBreakoutStrategy:
    """Implements ``StrategyProtocol``."""

    name = "orb"
    strategy_type = StrategyType.ORB

    def __init__(self, params: ORBParams = ORBParams()) -> None:
        self.params = params

    def is_applicable(self, snapshot: EnrichedSnapshot) -> bool:
        return (
            snapshot.volume_ratio > self.params.min_volume_ratio
            and snapshot.current_price > self.params.min_price
        )

    def min_confidence_threshold(self) -> float:
        return self.params.min_confidence

    def breakout_probability(self, snapshot: EnrichedSnapshot, levels: ORBLevels) -> float:
        """Base confidence plus volume and range-size bonuses, capped."""
        p = self.params
        confidence = p.base_confidence
        if snapshot.volume_ratio > p.high_volume_ratio:
            confidence += p.volume_bonus
        if snapshot.current_price > 0 and levels.range_size / snapshot.current_price > p.min_range_pct:
            confidence += p.range_bonus
        return min(p.max_confidence, confidence)

    def analyze(
        self,
        snapshot: EnrichedSnapshot,
        candles: Sequence[CandleData],
    ) -> list[Signal]:
        p = self.params
        levels = calculate_orb_levels(candles, p.opening_bars)
        if not levels.is_valid:
            return []

        price = snapshot.current_price
        if price > levels.orb_high:
            signal_type = SignalType.BUY
            entry, stop = levels.orb_high, levels.orb_low
            target_1 = entry + levels.range_size * p.target_multiple
            target_2 = entry + levels.range_size * p.target_2_multiple
            description = "ORB Breakout - Price above opening range high"
        elif price < levels.orb_low:
            signal_type = SignalType.SELL
            entry, stop = levels.orb_low, levels.orb_high
            target_1 = max(0.0, entry - levels.range_size * p.target_multiple)
            target_2 = max(0.0, entry - levels.range_size * p.target_2_multiple)
            description = "ORB Breakdown - Price below opening range low"
        else:
            return []

        confidence = self.breakout_probability(snapshot, levels)
        return [
            Signal(
                signal_type=signal_type,
                strategy=self.strategy_type,
                confidence=confidence,
                symbol=snapshot.symbol,
                strength=SignalStrength.from_confidence(confidence),
                entry_price=entry,
                stop_loss=stop,
                target_1=target_1,
                target_2=target_2,
                description=description,
                entry_reason=(
                    f"Opening range {levels.orb_low:.2f}-{levels.orb_high:.2f}, "
                    f"price {price:.2f}"
                ),
            )
        ]
