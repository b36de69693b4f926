"""Reporting frames — flatten engine output into pandas DataFrames.

Consumed by export and reporting layers; no I/O happens here.
"""

from typing import Iterable, Mapping

import pandas as pd

from tradescan.strategy.models import Signal, SignalPerformance, StrategyType, TradeSetup
from tradescan.strategy.scoring import calculate_signal_score


SETUP_COLUMNS = [
    "symbol",
    "setup_name",
    "primary_signal",
    "recommended_entry",
    "stop_loss",
    "target_1",
    "target_2",
    "risk_amount",
    "potential_reward",
    "risk_reward_ratio",
    "technical_confluence",
    "overall_confidence",
    "volume_confirmation",
    "trend_alignment",
    "best_entry_time",
    "created_at",
    "expires_at",
]

SIGNAL_COLUMNS = [
    "symbol",
    "strategy",
    "signal_type",
    "strength",
    "confidence",
    "entry_price",
    "stop_loss",
    "target_1",
    "target_2",
    "technical_score",
    "volume_confirmation",
    "volume_above_average",
    "breakout_confirmed",
    "score",
    "description",
    "created_at",
    "expires_at",
]

PERFORMANCE_COLUMNS = [
    "strategy",
    "total_signals",
    "successful_signals",
    "win_rate",
    "average_return",
    "max_return",
    "min_return",
    "average_holding_time_minutes",
]


def setups_to_frame(setups: Iterable[TradeSetup]) -> pd.DataFrame:
    """One row per setup, in the given order."""
    rows = [
        {
            "symbol": s.symbol,
            "setup_name": s.setup_name,
            "primary_signal": s.primary_signal.label,
            "recommended_entry": s.recommended_entry,
            "stop_loss": s.stop_loss,
            "target_1": s.target_1,
            "target_2": s.target_2,
            "risk_amount": s.risk_amount,
            "potential_reward": s.potential_reward,
            "risk_reward_ratio": s.risk_reward_ratio,
            "technical_confluence": s.technical_confluence,
            "overall_confidence": s.overall_confidence,
            "volume_confirmation": s.volume_confirmation,
            "trend_alignment": s.trend_alignment,
            "best_entry_time": s.best_entry_time,
            "created_at": s.created_at,
            "expires_at": s.expires_at,
        }
        for s in setups
    ]
    return pd.DataFrame(rows, columns=SETUP_COLUMNS)


def signals_to_frame(signals: Iterable[Signal]) -> pd.DataFrame:
    """One row per signal with its composite ranking score."""
    rows = [
        {
            "symbol": s.symbol,
            "strategy": s.strategy.label,
            "signal_type": s.signal_type.label,
            "strength": s.strength.label,
            "confidence": s.confidence,
            "entry_price": s.entry_price,
            "stop_loss": s.stop_loss,
            "target_1": s.target_1,
            "target_2": s.target_2,
            "technical_score": s.technical_score,
            "volume_confirmation": s.volume_confirmation,
            "volume_above_average": s.volume_above_average,
            "breakout_confirmed": s.breakout_confirmed,
            "score": calculate_signal_score(s),
            "description": s.description,
            "created_at": s.created_at,
            "expires_at": s.expires_at,
        }
        for s in signals
    ]
    return pd.DataFrame(rows, columns=SIGNAL_COLUMNS)


def performance_to_frame(
    stats: Mapping[StrategyType, SignalPerformance],
) -> pd.DataFrame:
    """One row per strategy, indexed by strategy label."""
    rows = [
        {
            "strategy": p.strategy.label,
            "total_signals": p.total_signals,
            "successful_signals": p.successful_signals,
            "win_rate": p.win_rate,
            "average_return": p.average_return,
            "max_return": p.max_return,
            "min_return": p.min_return,
            "average_holding_time_minutes": p.average_holding_time_minutes,
        }
        for p in stats.values()
    ]
    return pd.DataFrame(rows, columns=PERFORMANCE_COLUMNS).set_index("strategy")
