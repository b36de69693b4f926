"""RSI strategy — fades oversold / overbought readings."""

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
class RSIParams:
    oversold: float = 30.0
    overbought: float = 70.0
    confidence: float = 0.6
    stop_atr_mult: float = 1.0
    target_atr_mults: tuple[float, float] = (2.0, 3.0)
    min_confidence: float = 0.6


class RSIStrategy:
    """Implements ``StrategyProtocol``.

    BUY below ``oversold``, SELL above ``overbought``, fixed confidence.
    Levels are ATR-anchored around the current price.
    """

    name = "rsi"
    strategy_type = StrategyType.RSI

    def __init__(self, params: RSIParams = RSIParams()) -> None:
        self.params = params

    def is_applicable(self, snapshot: EnrichedSnapshot) -> bool:
        return snapshot.current_price > 0 and 0 < snapshot.rsi_14 < 100

    def min_confidence_threshold(self) -> float:
        return self.params.min_confidence

    def is_oversold(self, rsi: float) -> bool:
        return rsi < self.params.oversold

    def is_overbought(self, rsi: float) -> bool:
        return rsi > self.params.overbought

    def analyze(
        self,
        snapshot: EnrichedSnapshot,
        candles: Sequence[CandleData],
    ) -> list[Signal]:
        p = self.params
        rsi = snapshot.rsi_14
        if self.is_oversold(rsi):
            signal_type, description = SignalType.BUY, "RSI Oversold"
        elif self.is_overbought(rsi):
            signal_type, description = SignalType.SELL, "RSI Overbought"
        else:
            return []

        price = snapshot.current_price
        stop, target_1, target_2 = atr_levels(
            price,
            snapshot.atr_14,
            bullish=signal_type is SignalType.BUY,
            stop_mult=p.stop_atr_mult,
            target_mults=p.target_atr_mults,
        )
        return [
            Signal(
                signal_type=signal_type,
                strategy=self.strategy_type,
                confidence=p.confidence,
                symbol=snapshot.symbol,
                strength=SignalStrength.from_confidence(p.confidence),
                entry_price=price,
                stop_loss=stop,
                target_1=target_1,
                target_2=target_2,
                description=description,
                entry_reason=f"RSI(14) {rsi:.1f}",
            )
        ]
