"""VWAP strategy — trades price extended from VWAP with volume behind it."""

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
class VWAPParams:
    min_distance_pct: float = 0.01
    min_volume_ratio: float = 1.3
    target_pct: float = 0.02
    target_2_pct: float = 0.04
    base_confidence: float = 0.5
    high_volume_ratio: float = 1.5
    volume_bonus: float = 0.2
    distance_bonus: float = 0.1
    max_confidence: float = 0.8
    min_confidence: float = 0.55


class VWAPStrategy:
    """Implements ``StrategyProtocol``.

    BUY when price is more than ``min_distance_pct`` above VWAP on
    elevated volume; SELL on the mirror condition.  The stop sits at
    VWAP itself.
    """

    name = "vwap"
    strategy_type = StrategyType.VWAP

    def __init__(self, params: VWAPParams = VWAPParams()) -> None:
        self.params = params

    def is_applicable(self, snapshot: EnrichedSnapshot) -> bool:
        return snapshot.current_price > 0 and snapshot.vwap > 0 and snapshot.volume > 0

    def min_confidence_threshold(self) -> float:
        return self.params.min_confidence

    def vwap_strength(self, snapshot: EnrichedSnapshot) -> float:
        p = self.params
        confidence = p.base_confidence
        if snapshot.volume_ratio > p.high_volume_ratio:
            confidence += p.volume_bonus
        distance = abs(snapshot.current_price - snapshot.vwap) / snapshot.vwap
        if distance > p.min_distance_pct:
            confidence += p.distance_bonus
        return min(p.max_confidence, confidence)

    def analyze(
        self,
        snapshot: EnrichedSnapshot,
        candles: Sequence[CandleData],
    ) -> list[Signal]:
        p = self.params
        if snapshot.vwap <= 0 or snapshot.volume_ratio <= p.min_volume_ratio:
            return []

        price = snapshot.current_price
        diff_pct = (price - snapshot.vwap) / snapshot.vwap
        if diff_pct > p.min_distance_pct:
            signal_type = SignalType.BUY
            target_1 = price * (1 + p.target_pct)
            target_2 = price * (1 + p.target_2_pct)
            description = "VWAP Breakout - Price above VWAP with volume"
        elif diff_pct < -p.min_distance_pct:
            signal_type = SignalType.SELL
            target_1 = price * (1 - p.target_pct)
            target_2 = price * (1 - p.target_2_pct)
            description = "VWAP Breakdown - Price below VWAP with volume"
        else:
            return []

        confidence = self.vwap_strength(snapshot)
        return [
            Signal(
                signal_type=signal_type,
                strategy=self.strategy_type,
                confidence=confidence,
                symbol=snapshot.symbol,
                strength=SignalStrength.from_confidence(confidence),
                entry_price=price,
                stop_loss=snapshot.vwap,
                target_1=target_1,
                target_2=target_2,
                description=description,
                entry_reason=f"{diff_pct:+.2%} from VWAP {snapshot.vwap:.2f}",
            )
        ]
