"""Breakout strategy — follows the snapshot's precomputed breakout flag."""

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
class BreakoutParams:
    min_volume_ratio: float = 1.0
    confidence: float = 0.7
    reward_multiples: tuple[float, float] = (2.0, 3.0)
    min_confidence: float = 0.7


class BreakoutStrategy:
    """Implements ``StrategyProtocol``.

    Emits a BUY when ``is_breakout`` is set.  Entry is the current price,
    the broken resistance becomes the stop, and targets are multiples of
    that risk.
    """

    name = "breakout"
    strategy_type = StrategyType.BREAKOUT

    def __init__(self, params: BreakoutParams = BreakoutParams()) -> None:
        self.params = params

    def is_applicable(self, snapshot: EnrichedSnapshot) -> bool:
        return snapshot.current_price > 0 and snapshot.volume_ratio > self.params.min_volume_ratio

    def min_confidence_threshold(self) -> float:
        return self.params.min_confidence

    def analyze(
        self,
        snapshot: EnrichedSnapshot,
        candles: Sequence[CandleData],
    ) -> list[Signal]:
        if not snapshot.is_breakout:
            return []

        p = self.params
        entry = snapshot.current_price
        stop = snapshot.resistance_level if 0 < snapshot.resistance_level < entry else 0.0
        risk = entry - stop if stop > 0 else 0.0
        return [
            Signal(
                signal_type=SignalType.BUY,
                strategy=self.strategy_type,
                confidence=p.confidence,
                symbol=snapshot.symbol,
                strength=SignalStrength.from_confidence(p.confidence),
                entry_price=entry,
                stop_loss=stop,
                target_1=entry + risk * p.reward_multiples[0] if risk else 0.0,
                target_2=entry + risk * p.reward_multiples[1] if risk else 0.0,
                description="Price Breakout",
                entry_reason=f"Cleared resistance {snapshot.resistance_level:.2f} on volume",
            )
        ]
