"""Strategy protocol and shared level helpers.

Defines the interface that all strategies must implement.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from tradescan.strategy.models import CandleData, EnrichedSnapshot, Signal, StrategyType


@runtime_checkable
class StrategyProtocol(Protocol):
    """Interface that all trading strategies must satisfy.

    ``is_applicable`` is a cheap precondition gate checked before
    ``analyze``; ``analyze`` may assume it passed.  Implementations hold
    only their own parameters and never touch engine state.
    """

    name: str
    strategy_type: StrategyType

    def is_applicable(self, snapshot: EnrichedSnapshot) -> bool:
        ...

    def analyze(
        self,
        snapshot: EnrichedSnapshot,
        candles: Sequence[CandleData],
    ) -> list[Signal]:
        """Evaluate one symbol and return zero or more raw signals."""
        ...

    def min_confidence_threshold(self) -> float:
        ...


def atr_levels(
    price: float,
    atr: float,
    bullish: bool,
    stop_mult: float = 1.0,
    target_mults: tuple[float, float] = (2.0, 3.0),
) -> tuple[float, float, float]:
    """Return ``(stop, target_1, target_2)`` anchored on ATR distances.

    All three are 0.0 when *atr* or *price* is not positive.  Levels are
    floored at 0.0.
    """
    if atr <= 0 or price <= 0:
        return 0.0, 0.0, 0.0
    sign = 1.0 if bullish else -1.0
    return (
        max(0.0, price - sign * stop_mult * atr),
        max(0.0, price + sign * target_mults[0] * atr),
        max(0.0, price + sign * target_mults[1] * atr),
    )
