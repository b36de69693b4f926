"""Signal portfolio — tracks live signals until they expire."""

from datetime import datetime, timezone
from typing import Iterable, Optional

from tradescan.strategy.models import Signal, SignalType, StrategyType
from tradescan.strategy.scoring import is_signal_active


class SignalPortfolio:
    """Active and expired signals for the current session.

    Not thread-safe; owned by whichever layer consumes engine output.
    """

    def __init__(self, signals: Iterable[Signal] = ()) -> None:
        self.active_signals: list[Signal] = []
        self.expired_signals: list[Signal] = []
        self.last_update: Optional[datetime] = None
        for signal in signals:
            self.add_signal(signal)

    def __len__(self) -> int:
        return len(self.active_signals)

    def add_signal(self, signal: Signal, now: Optional[datetime] = None) -> None:
        self.active_signals.append(signal)
        self.last_update = now or datetime.now(timezone.utc)

    def remove_expired(self, now: Optional[datetime] = None) -> list[Signal]:
        """Move expired signals to ``expired_signals`` and return them."""
        now = now or datetime.now(timezone.utc)
        still_active: list[Signal] = []
        expired: list[Signal] = []
        for signal in self.active_signals:
            (still_active if is_signal_active(signal, now) else expired).append(signal)
        self.active_signals = still_active
        self.expired_signals.extend(expired)
        self.last_update = now
        return expired

    def signals_by_type(self, signal_type: SignalType) -> list[Signal]:
        return [s for s in self.active_signals if s.signal_type is signal_type]

    def signals_by_strategy(self, strategy: StrategyType) -> list[Signal]:
        return [s for s in self.active_signals if s.strategy is strategy]

    def high_confidence_signals(self, min_confidence: float = 0.7) -> list[Signal]:
        return [s for s in self.active_signals if s.confidence >= min_confidence]
