"""TradeScan — Strategy engine (per-symbol evaluation and batch orchestration).

Connects enrichment, strategies and risk math into one analysis pass.
Per-symbol evaluation is the pure ``evaluate_symbol`` function; the
``StrategyEngine`` owns the only mutable state (the enabled map, the
configuration and the performance table) behind a single lock.
"""

import asyncio
import dataclasses
import logging
import math
import threading
from datetime import datetime, timedelta, timezone
from typing import Iterable, Mapping, Optional, Sequence

from tradescan.config import EngineConfig, validate_engine_config
from tradescan.risk.risk_reward import calculate_risk_reward
from tradescan.strategy.base import StrategyProtocol
from tradescan.strategy.enrichment import enrich_quote
from tradescan.strategy.models import (
    BatchResult,
    CandleData,
    EnrichedSnapshot,
    Quote,
    Signal,
    SignalPerformance,
    SignalType,
    StrategyFailure,
    StrategyType,
    TradeSetup,
)
from tradescan.strategy.registry import build_default_strategies
from tradescan.strategy.scoring import (
    filter_signals_by_confidence,
    rank_signals_by_score,
)

logger = logging.getLogger("tradescan.engine")

BEST_ENTRY_TIME = "Market Open +15 mins"
MAX_CONFLUENCE_BONUS = 0.2
CONFLUENCE_BONUS_PER_SIGNAL = 0.05


def _utc_now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def _stamp_signal(
    signal: Signal,
    confidence: float,
    snapshot: EnrichedSnapshot,
    config: EngineConfig,
    now: datetime,
) -> Signal:
    """Attach symbol, timestamps and snapshot-derived metrics to a raw signal."""
    return dataclasses.replace(
        signal,
        confidence=confidence,
        symbol=snapshot.symbol,
        created_at=now,
        expires_at=now + timedelta(minutes=config.signal_validity_minutes),
        volume_above_average=snapshot.volume_spike,
        breakout_confirmed=snapshot.is_breakout or snapshot.is_breakdown,
        technical_score=min(1.0, snapshot.rsi_14 / 100.0 + 0.5),
        volume_confirmation=min(1.0, snapshot.volume_ratio / 2.0),
    )


def evaluate_symbol(
    strategies: Sequence[StrategyProtocol],
    snapshot: EnrichedSnapshot,
    candles: Sequence[CandleData],
    config: EngineConfig,
    now: datetime,
) -> tuple[list[Signal], list[StrategyFailure]]:
    """Run *strategies* against one symbol.

    Returns ``(signals, failures)``.  Signals below their strategy's own
    minimum confidence are dropped; the rest are ordered by confidence
    (highest first, ties in strategy order) and capped at
    ``config.max_signals_per_stock``.  A strategy that raises, or emits a
    signal without a finite numeric confidence, contributes a
    ``StrategyFailure`` instead of signals.
    """
    signals: list[Signal] = []
    failures: list[StrategyFailure] = []

    for strategy in strategies:
        try:
            if not strategy.is_applicable(snapshot):
                logger.debug("%s: %s not applicable", snapshot.symbol, strategy.name)
                continue
            threshold = strategy.min_confidence_threshold()
            accepted = []
            for signal in strategy.analyze(snapshot, candles):
                confidence = float(signal.confidence)
                if not math.isfinite(confidence):
                    raise ValueError(f"non-finite confidence {signal.confidence!r}")
                if confidence < threshold:
                    logger.debug(
                        "%s: %s signal %.2f below threshold %.2f",
                        snapshot.symbol, strategy.name, confidence, threshold,
                    )
                    continue
                accepted.append(_stamp_signal(signal, confidence, snapshot, config, now))
        except Exception as exc:
            logger.warning(
                "%s: strategy %s failed: %s", snapshot.symbol, strategy.name, exc
            )
            failures.append(
                StrategyFailure(
                    symbol=snapshot.symbol,
                    strategy=strategy.name,
                    error=f"{type(exc).__name__}: {exc}",
                )
            )
            continue
        signals.extend(accepted)

    signals.sort(key=lambda s: s.confidence, reverse=True)
    return signals[: config.max_signals_per_stock], failures


def _direction(signal_type: SignalType) -> int:
    if signal_type.is_bullish:
        return 1
    if signal_type.is_bearish:
        return -1
    return 0


def _setup_name(primary: Signal, signals: Sequence[Signal]) -> str:
    labels = list(dict.fromkeys(s.strategy.label for s in signals))
    return f"{' + '.join(labels)} {primary.signal_type.label}"


def combine_signals(
    symbol: str,
    signals: Sequence[Signal],
    config: Optional[EngineConfig] = None,
    now: Optional[datetime] = None,
) -> Optional[TradeSetup]:
    """Merge one symbol's signals into a trade setup.

    The highest-confidence signal (first one on ties) is the primary and
    supplies the levels.  Overall confidence is the mean confidence plus
    0.05 per additional signal, the bonus capped at 0.2 and the total at
    1.0.  Returns ``None`` for an empty list.
    """
    if not signals:
        return None
    config = config or EngineConfig()
    now = _utc_now(now)

    primary = max(signals, key=lambda s: s.confidence)
    count = len(signals)
    mean = sum(s.confidence for s in signals) / count
    bonus = min(MAX_CONFLUENCE_BONUS, (count - 1) * CONFLUENCE_BONUS_PER_SIGNAL)

    entry = primary.entry_price
    stop = primary.stop_loss
    target_1 = primary.target_1
    direction = _direction(primary.signal_type)

    return TradeSetup(
        symbol=symbol,
        primary_signal=primary.signal_type,
        supporting_signals=tuple(signals),
        recommended_entry=entry,
        stop_loss=stop,
        target_1=target_1,
        target_2=primary.target_2,
        risk_amount=abs(entry - stop),
        potential_reward=abs(target_1 - entry) if target_1 > 0 else 0.0,
        risk_reward_ratio=calculate_risk_reward(entry, stop, target_1),
        technical_confluence=count,
        overall_confidence=min(1.0, mean + bonus),
        setup_name=_setup_name(primary, signals),
        volume_confirmation=any(s.volume_above_average for s in signals),
        trend_alignment=direction != 0
        and all(_direction(s.signal_type) == direction for s in signals),
        best_entry_time=BEST_ENTRY_TIME,
        validity_minutes=config.setup_validity_minutes,
        created_at=now,
        expires_at=now + timedelta(minutes=config.setup_validity_minutes),
    )


def is_high_quality(setup: TradeSetup, config: Optional[EngineConfig] = None) -> bool:
    """Confidence and risk:reward both clear the configured minimums."""
    config = config or EngineConfig()
    return (
        setup.overall_confidence >= config.confidence_threshold
        and setup.risk_reward_ratio >= config.min_risk_reward
    )


@dataclasses.dataclass
class _PerformanceTally:
    """Running totals behind one ``SignalPerformance`` row."""

    total: int = 0
    wins: int = 0
    return_sum: float = 0.0
    max_return: float = 0.0
    min_return: float = 0.0
    holding_sum: float = 0.0
    holding_count: int = 0

    def add(self, profitable: bool, return_pct: float, holding_minutes: Optional[float]) -> None:
        if self.total == 0:
            self.max_return = return_pct
            self.min_return = return_pct
        else:
            self.max_return = max(self.max_return, return_pct)
            self.min_return = min(self.min_return, return_pct)
        self.total += 1
        self.wins += 1 if profitable else 0
        self.return_sum += return_pct
        if holding_minutes is not None:
            self.holding_sum += holding_minutes
            self.holding_count += 1

    def snapshot(self, strategy: StrategyType) -> SignalPerformance:
        return SignalPerformance(
            strategy=strategy,
            total_signals=self.total,
            successful_signals=self.wins,
            win_rate=self.wins / self.total if self.total else 0.0,
            average_return=self.return_sum / self.total if self.total else 0.0,
            max_return=self.max_return,
            min_return=self.min_return,
            average_holding_time_minutes=(
                self.holding_sum / self.holding_count if self.holding_count else 0.0
            ),
        )


class StrategyEngine:
    """Runs the enabled strategies over a batch of symbols.

    Args:
        config: Engine settings.  Defaults to ``EngineConfig()``.
        strategies: Strategies to register, in tie-break order.  Defaults
            to every registry strategy built with ``config.strategy_params``.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        strategies: Optional[Iterable[StrategyProtocol]] = None,
    ) -> None:
        self._config = validate_engine_config(config or EngineConfig())
        self._lock = threading.RLock()
        self._strategies: list[StrategyProtocol] = []
        self._enabled: dict[str, bool] = {}
        self._performance: dict[StrategyType, _PerformanceTally] = {}

        if strategies is None:
            strategies = build_default_strategies(self._config.strategy_params)
        for strategy in strategies:
            self.add_strategy(strategy)

        for name, enabled in self._config.strategy_enabled.items():
            if enabled:
                self.enable_strategy(name)
            else:
                self.disable_strategy(name)

        logger.info(
            "Strategy engine initialised with %d strategies (%d enabled)",
            len(self._strategies),
            len(self.active_strategies()),
        )

    # ── Configuration ────────────────────────────────────────────────────

    @property
    def config(self) -> EngineConfig:
        with self._lock:
            return self._config

    def _update_config(self, **changes) -> None:
        with self._lock:
            self._config = validate_engine_config(
                dataclasses.replace(self._config, **changes)
            )

    def set_confidence_threshold(self, threshold: float) -> None:
        self._update_config(confidence_threshold=threshold)

    def set_risk_reward_threshold(self, min_rr_ratio: float) -> None:
        self._update_config(min_risk_reward=min_rr_ratio)

    def set_max_signals_per_stock(self, max_signals: int) -> None:
        self._update_config(max_signals_per_stock=max_signals)

    # ── Strategy management ──────────────────────────────────────────────

    def add_strategy(self, strategy: StrategyProtocol) -> None:
        """Register *strategy* (enabled).  Names must be unique."""
        if not isinstance(strategy, StrategyProtocol):
            raise TypeError(f"{strategy!r} does not implement StrategyProtocol")
        with self._lock:
            if strategy.name in self._enabled:
                raise ValueError(f"Strategy '{strategy.name}' is already registered")
            self._strategies.append(strategy)
            self._enabled[strategy.name] = True

    def _require(self, name: str) -> None:
        if name not in self._enabled:
            raise KeyError(
                f"Unknown strategy '{name}'. "
                f"Available: {', '.join(self._enabled.keys())}"
            )

    def remove_strategy(self, name: str) -> None:
        with self._lock:
            self._require(name)
            self._strategies = [s for s in self._strategies if s.name != name]
            del self._enabled[name]

    def enable_strategy(self, name: str) -> None:
        with self._lock:
            self._require(name)
            self._enabled[name] = True

    def disable_strategy(self, name: str) -> None:
        with self._lock:
            self._require(name)
            self._enabled[name] = False

    def available_strategies(self) -> list[str]:
        with self._lock:
            return [s.name for s in self._strategies]

    def active_strategies(self) -> list[str]:
        with self._lock:
            return [s.name for s in self._strategies if self._enabled[s.name]]

    def strategy_states(self) -> dict[str, bool]:
        """Copy of the enabled map, in registration order."""
        with self._lock:
            return {s.name: self._enabled[s.name] for s in self._strategies}

    def _pass_state(self) -> tuple[list[StrategyProtocol], EngineConfig]:
        with self._lock:
            enabled = [s for s in self._strategies if self._enabled[s.name]]
            return enabled, self._config

    # ── Analysis ─────────────────────────────────────────────────────────

    def analyze_stock(
        self,
        snapshot: EnrichedSnapshot,
        candles: Sequence[CandleData],
        now: Optional[datetime] = None,
    ) -> list[Signal]:
        """Signals for one symbol.  Strategy failures are logged and skipped."""
        strategies, config = self._pass_state()
        signals, _ = evaluate_symbol(strategies, snapshot, candles, config, _utc_now(now))
        return signals

    def combine_signals(
        self,
        symbol: str,
        signals: Sequence[Signal],
        now: Optional[datetime] = None,
    ) -> Optional[TradeSetup]:
        return combine_signals(symbol, signals, self.config, now)

    def is_high_quality(self, setup: TradeSetup) -> bool:
        return is_high_quality(setup, self.config)

    def _assemble(
        self,
        evaluated: list[tuple[str, list[Signal], list[StrategyFailure]]],
        missing: list[str],
        config: EngineConfig,
        now: datetime,
    ) -> BatchResult:
        setups: list[TradeSetup] = []
        signals: dict[str, list[Signal]] = {}
        failures: list[StrategyFailure] = []

        for symbol, symbol_signals, symbol_failures in evaluated:
            signals[symbol] = symbol_signals
            failures.extend(symbol_failures)
            setup = combine_signals(symbol, symbol_signals, config, now)
            if setup is not None and is_high_quality(setup, config):
                setups.append(setup)

        setups.sort(key=lambda s: s.overall_confidence, reverse=True)
        result = BatchResult(
            setups=tuple(setups),
            signals=signals,
            failures=tuple(failures),
            missing_history=tuple(missing),
        )
        logger.info(
            "Batch complete: %d symbols, %d setups, %d failures, %d without history",
            len(evaluated), len(setups), len(failures), len(missing),
        )
        return result

    @staticmethod
    def _split(
        snapshots: Iterable[EnrichedSnapshot],
        history: Mapping[str, Sequence[CandleData]],
    ) -> tuple[list[tuple[EnrichedSnapshot, Sequence[CandleData]]], list[str]]:
        work = []
        missing = []
        for snapshot in snapshots:
            candles = history.get(snapshot.symbol)
            if candles is None:
                logger.debug("%s: no candle history, skipped", snapshot.symbol)
                missing.append(snapshot.symbol)
                continue
            work.append((snapshot, candles))
        return work, missing

    def generate_setups(
        self,
        snapshots: Iterable[EnrichedSnapshot],
        history: Mapping[str, Sequence[CandleData]],
        now: Optional[datetime] = None,
    ) -> BatchResult:
        """Evaluate every symbol and keep the high-quality setups.

        Symbols without an entry in *history* are skipped and listed in
        ``missing_history``.  Setups are ordered by overall confidence.
        """
        now = _utc_now(now)
        strategies, config = self._pass_state()
        work, missing = self._split(snapshots, history)
        evaluated = []
        for snapshot, candles in work:
            signals, failures = evaluate_symbol(strategies, snapshot, candles, config, now)
            evaluated.append((snapshot.symbol, signals, failures))
        return self._assemble(evaluated, missing, config, now)

    async def generate_setups_async(
        self,
        snapshots: Iterable[EnrichedSnapshot],
        history: Mapping[str, Sequence[CandleData]],
        now: Optional[datetime] = None,
    ) -> BatchResult:
        """Same result as ``generate_setups``, one worker thread per symbol."""
        now = _utc_now(now)
        strategies, config = self._pass_state()
        work, missing = self._split(snapshots, history)
        outcomes = await asyncio.gather(
            *(
                asyncio.to_thread(evaluate_symbol, strategies, snapshot, candles, config, now)
                for snapshot, candles in work
            )
        )
        evaluated = [
            (snapshot.symbol, signals, failures)
            for (snapshot, _), (signals, failures) in zip(work, outcomes)
        ]
        return self._assemble(evaluated, missing, config, now)

    def enrich(
        self,
        quotes: Iterable[Quote],
        history: Mapping[str, Sequence[CandleData]],
    ) -> list[EnrichedSnapshot]:
        """Enrich each quote with indicators from its candle history."""
        enrichment = self.config.enrichment
        return [enrich_quote(q, history.get(q.symbol, ()), enrichment) for q in quotes]

    def scan(
        self,
        quotes: Iterable[Quote],
        history: Mapping[str, Sequence[CandleData]],
        now: Optional[datetime] = None,
    ) -> BatchResult:
        """Enrich *quotes* and run ``generate_setups`` on the snapshots."""
        return self.generate_setups(self.enrich(quotes, history), history, now)

    # ── Ranking ──────────────────────────────────────────────────────────

    @staticmethod
    def filter_signals_by_confidence(
        signals: Iterable[Signal], min_confidence: float = 0.6
    ) -> list[Signal]:
        return filter_signals_by_confidence(signals, min_confidence)

    @staticmethod
    def rank_signals_by_score(signals: Iterable[Signal]) -> list[Signal]:
        return rank_signals_by_score(signals)

    # ── Performance ──────────────────────────────────────────────────────

    def record_outcome(
        self,
        strategy_type: StrategyType,
        profitable: bool,
        return_pct: float,
        holding_minutes: Optional[float] = None,
    ) -> SignalPerformance:
        """Fold one realised outcome into *strategy_type*'s statistics.

        Returns the updated row.  Raises ``ValueError`` for a non-finite
        return or a negative holding time.
        """
        if not isinstance(strategy_type, StrategyType):
            raise TypeError(f"strategy_type must be a StrategyType, got {strategy_type!r}")
        if not math.isfinite(return_pct):
            raise ValueError(f"return_pct must be finite, got {return_pct}")
        if holding_minutes is not None and (
            not math.isfinite(holding_minutes) or holding_minutes < 0
        ):
            raise ValueError(
                f"holding_minutes must be non-negative, got {holding_minutes}"
            )

        with self._lock:
            tally = self._performance.setdefault(strategy_type, _PerformanceTally())
            tally.add(bool(profitable), float(return_pct), holding_minutes)
            row = tally.snapshot(strategy_type)

        logger.info(
            "Outcome recorded for %s: %s %.2f%% (win rate %.0f%% over %d)",
            strategy_type.label,
            "win" if profitable else "loss",
            return_pct,
            row.win_rate * 100,
            row.total_signals,
        )
        return row

    def performance_stats(self) -> dict[StrategyType, SignalPerformance]:
        """Immutable copy of the performance table."""
        with self._lock:
            return {st: t.snapshot(st) for st, t in self._performance.items()}
