"""Volume Spike strategy — trades in the direction of price on unusual volume."""

from dataclasses import dataclass
from typing import Sequence

from tradescan.strategy.base import atr_levels
from tradescan.strategy.models import (
    CandleData,
    EnrichedSnapshot,
    Signal,
    SignalStrength,
    SignalType,
    StrategyType,
)


@dataclass(frozen=True)
class VolumeSpikeParams:
    spike_ratio: float = 1.5
    confidence_per_ratio: float = 0.3
    max_confidence: float = 0.8
    stop_atr_mult: float = 1.0
    target_atr_mults: tuple[float, float] = (2.0, 3.0)
    min_confidence: float = 0.6


class VolumeSpikeStrategy:
    """Implements ``StrategyProtocol``.

    Fires when the volume ratio exceeds ``spike_ratio`` and the snapshot's
    ``volume_spike`` flag agrees.  An unchanged price gives no direction
    and therefore no signal.
    """

    name = "volume_spike"
    strategy_type = StrategyType.VOLUME_SPIKE

    def __init__(self, params: VolumeSpikeParams = VolumeSpikeParams()) -> None:
        self.params = params

    def is_applicable(self, snapshot: EnrichedSnapshot) -> bool:
        return snapshot.current_price > 0 and snapshot.volume > 0 and snapshot.avg_volume > 0

    def min_confidence_threshold(self) -> float:
        return self.params.min_confidence

    def volume_strength(self, snapshot: EnrichedSnapshot) -> float:
        p = self.params
        return min(p.max_confidence, snapshot.volume_ratio * p.confidence_per_ratio)

    def analyze(
        self,
        snapshot: EnrichedSnapshot,
        candles: Sequence[CandleData],
    ) -> list[Signal]:
        p = self.params
        if snapshot.volume_ratio <= p.spike_ratio or not snapshot.volume_spike:
            return []
        if snapshot.change == 0:
            return []

        bullish = snapshot.change > 0
        price = snapshot.current_price
        stop, target_1, target_2 = atr_levels(
            price,
            snapshot.atr_14,
            bullish=bullish,
            stop_mult=p.stop_atr_mult,
            target_mults=p.target_atr_mults,
        )
        confidence = self.volume_strength(snapshot)
        return [
            Signal(
                signal_type=SignalType.BUY if bullish else SignalType.SELL,
                strategy=self.strategy_type,
                confidence=confidence,
                symbol=snapshot.symbol,
                strength=SignalStrength.from_confidence(confidence),
                entry_price=price,
                stop_loss=stop,
                target_1=target_1,
                target_2=target_2,
                description="Volume Spike with Price Alignment",
                entry_reason=f"Volume {snapshot.volume_ratio:.1f}x average",
            )
        ]
