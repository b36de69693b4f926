"""Daily trading summary — end-of-day roll-up of one batch result."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date as Date
from typing import Iterable

from tradescan.scan import build_market_scan
from tradescan.strategy.models import BatchResult, EnrichedSnapshot, StrategyType, TradeSetup


BULLISH_BIAS = 0.2
BEARISH_BIAS = -0.2


@dataclass(frozen=True)
class DailyTradingSummary:
    date: str
    total_setups_generated: int = 0
    high_confidence_setups: int = 0
    signals_above_threshold: int = 0
    best_setups: tuple[TradeSetup, ...] = ()
    strategy_signal_count: dict[StrategyType, int] = field(default_factory=dict)
    symbol_activity: dict[str, int] = field(default_factory=dict)
    top_performers: tuple[str, ...] = ()
    worst_performers: tuple[str, ...] = ()
    high_volume_stocks: tuple[str, ...] = ()
    market_sentiment_score: float = 0.0
    market_bias: str = "NEUTRAL"


def market_sentiment(snapshots: Iterable[EnrichedSnapshot]) -> float:
    """``(advancers − decliners) / total`` in [-1, 1]; 0.0 for no symbols."""
    changes = [s.change_percent for s in snapshots]
    if not changes:
        return 0.0
    advancers = sum(1 for c in changes if c > 0)
    decliners = sum(1 for c in changes if c < 0)
    return (advancers - decliners) / len(changes)


def market_bias(sentiment: float) -> str:
    if sentiment > BULLISH_BIAS:
        return "BULLISH"
    if sentiment < BEARISH_BIAS:
        return "BEARISH"
    return "NEUTRAL"


def summarize_day(
    result: BatchResult,
    snapshots: Iterable[EnrichedSnapshot],
    date: Date | str,
    high_confidence: float = 0.75,
    confidence_threshold: float = 0.6,
    top_n: int = 5,
) -> DailyTradingSummary:
    """Summarise *result* and the market breadth of *snapshots*.

    Args:
        result: Output of ``StrategyEngine.generate_setups``.
        snapshots: The snapshots the batch was run on.
        date: Trading date, stored as ISO text.
        high_confidence: Setup confidence counted as "high confidence".
        confidence_threshold: Signal confidence counted as "above threshold".
        top_n: Length of the best-setup and performer lists.
    """
    items = list(snapshots)
    signals = result.all_signals
    scan = build_market_scan(items, top_n=top_n)
    sentiment = market_sentiment(items)

    return DailyTradingSummary(
        date=date.isoformat() if isinstance(date, Date) else str(date),
        total_setups_generated=len(result.setups),
        high_confidence_setups=sum(
            1 for s in result.setups if s.overall_confidence >= high_confidence
        ),
        signals_above_threshold=sum(
            1 for s in signals if s.confidence >= confidence_threshold
        ),
        best_setups=result.setups[:top_n],
        strategy_signal_count=dict(Counter(s.strategy for s in signals)),
        symbol_activity={sym: len(sigs) for sym, sigs in result.signals.items() if sigs},
        top_performers=tuple(s.symbol for s in scan.top_gainers),
        worst_performers=tuple(s.symbol for s in scan.top_losers),
        high_volume_stocks=tuple(s.symbol for s in scan.high_volume),
        market_sentiment_score=sentiment,
        market_bias=market_bias(sentiment),
    )
