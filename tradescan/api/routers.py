"""Internal API routers — /setups, /signals, /performance, /strategies, /outcomes.

No analysis logic. Reads the last published batch and delegates strategy
switches and outcome recording to the injected engine.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Query

from tradescan.strategy.models import (
    BatchResult,
    Signal,
    SignalPerformance,
    StrategyType,
    TradeSetup,
)
from tradescan.strategy.scoring import calculate_signal_score

logger = logging.getLogger("tradescan.api")
router = APIRouter()

# ── Shared state (set during app startup) ────────────────────────────────

_engine = None  # Set via configure_routers()
_latest_batch: Optional[BatchResult] = None  # Set via publish_batch()
_published_at: Optional[str] = None


def configure_routers(engine) -> None:
    """Inject the ``StrategyEngine`` (or a duck-type for tests)."""
    global _engine, _latest_batch, _published_at  # noqa: PLW0603
    _engine = engine
    _latest_batch = None
    _published_at = None


def publish_batch(result: BatchResult, published_at: Optional[datetime] = None) -> None:
    """Make *result* the batch served by the read endpoints."""
    global _latest_batch, _published_at  # noqa: PLW0603
    _latest_batch = result
    _published_at = (published_at or datetime.now(timezone.utc)).isoformat()
    logger.info(
        "Published batch: %d setups across %d symbols",
        len(result.setups),
        len(result.signals),
    )


# ── Serialisation ────────────────────────────────────────────────────────


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _signal_dict(signal: Signal) -> dict:
    return {
        "symbol": signal.symbol,
        "strategy": signal.strategy.value,
        "strategy_label": signal.strategy.label,
        "signal_type": signal.signal_type.value,
        "strength": signal.strength.value,
        "confidence": signal.confidence,
        "entry_price": signal.entry_price,
        "stop_loss": signal.stop_loss,
        "target_1": signal.target_1,
        "target_2": signal.target_2,
        "technical_score": signal.technical_score,
        "volume_confirmation": signal.volume_confirmation,
        "volume_above_average": signal.volume_above_average,
        "breakout_confirmed": signal.breakout_confirmed,
        "score": round(calculate_signal_score(signal), 2),
        "description": signal.description,
        "entry_reason": signal.entry_reason,
        "created_at": _iso(signal.created_at),
        "expires_at": _iso(signal.expires_at),
    }


def _setup_dict(setup: TradeSetup) -> dict:
    return {
        "symbol": setup.symbol,
        "setup_name": setup.setup_name,
        "primary_signal": setup.primary_signal.value,
        "recommended_entry": setup.recommended_entry,
        "stop_loss": setup.stop_loss,
        "target_1": setup.target_1,
        "target_2": setup.target_2,
        "risk_amount": setup.risk_amount,
        "potential_reward": setup.potential_reward,
        "risk_reward_ratio": setup.risk_reward_ratio,
        "technical_confluence": setup.technical_confluence,
        "overall_confidence": setup.overall_confidence,
        "volume_confirmation": setup.volume_confirmation,
        "trend_alignment": setup.trend_alignment,
        "best_entry_time": setup.best_entry_time,
        "validity_minutes": setup.validity_minutes,
        "created_at": _iso(setup.created_at),
        "expires_at": _iso(setup.expires_at),
        "supporting_signals": [_signal_dict(s) for s in setup.supporting_signals],
    }


def _performance_dict(perf: SignalPerformance) -> dict:
    return {
        "strategy": perf.strategy.value,
        "strategy_label": perf.strategy.label,
        "total_signals": perf.total_signals,
        "successful_signals": perf.successful_signals,
        "win_rate": perf.win_rate,
        "average_return": perf.average_return,
        "max_return": perf.max_return,
        "min_return": perf.min_return,
        "average_holding_time_minutes": perf.average_holding_time_minutes,
    }


def _parse_strategy_type(text) -> Optional[StrategyType]:
    """Match an enum value (``"VOLUME_SPIKE"``) or label (``"Volume Spike"``)."""
    if not isinstance(text, str):
        return None
    for member in StrategyType:
        if text in (member.value, member.label):
            return member
    return None


# ── Endpoints ────────────────────────────────────────────────────────────


@router.get("/setups")
async def get_setups(min_confidence: float = Query(default=0.0, ge=0.0, le=1.0)):
    """Return the latest ranked setups."""
    if _latest_batch is None:
        return {"setups": [], "published_at": None, "degraded_symbols": [], "missing_history": []}
    setups = [s for s in _latest_batch.setups if s.overall_confidence >= min_confidence]
    return {
        "setups": [_setup_dict(s) for s in setups],
        "published_at": _published_at,
        "degraded_symbols": _latest_batch.degraded_symbols,
        "missing_history": list(_latest_batch.missing_history),
    }


@router.get("/signals/{symbol}")
async def get_symbol_signals(symbol: str):
    """Return the retained raw signals for one symbol."""
    if _latest_batch is None or symbol not in _latest_batch.signals:
        return {"error": f"Unknown symbol: {symbol}"}
    return {
        "symbol": symbol,
        "signals": [_signal_dict(s) for s in _latest_batch.signals[symbol]],
        "failures": [
            {"strategy": f.strategy, "error": f.error}
            for f in _latest_batch.failures
            if f.symbol == symbol
        ],
    }


@router.get("/performance")
async def get_performance():
    """Return the per-strategy performance table."""
    if _engine is None:
        return {"performance": []}
    stats = _engine.performance_stats()
    return {"performance": [_performance_dict(p) for p in stats.values()]}


@router.get("/strategies")
async def get_strategies():
    """Return every registered strategy with its enabled flag."""
    if _engine is None:
        return {"strategies": []}
    return {
        "strategies": [
            {"name": name, "enabled": enabled}
            for name, enabled in _engine.strategy_states().items()
        ]
    }


@router.post("/strategies/{name}/enable")
async def enable_strategy(name: str):
    """Enable a strategy for subsequent batches."""
    if _engine is None:
        return {"error": "No engine"}
    try:
        _engine.enable_strategy(name)
    except KeyError:
        return {"error": f"Unknown strategy: {name}"}
    logger.info("Strategy '%s' enabled via API.", name)
    return {"status": "enabled", "strategy": name}


@router.post("/strategies/{name}/disable")
async def disable_strategy(name: str):
    """Disable a strategy for subsequent batches."""
    if _engine is None:
        return {"error": "No engine"}
    try:
        _engine.disable_strategy(name)
    except KeyError:
        return {"error": f"Unknown strategy: {name}"}
    logger.info("Strategy '%s' disabled via API.", name)
    return {"status": "disabled", "strategy": name}


@router.post("/outcomes")
async def post_outcome(body: dict):
    """Record a realised trade outcome for a strategy.

    Body: ``{"strategy": "VWAP", "profitable": true, "return_pct": 1.8,
    "holding_minutes": 45}`` (``holding_minutes`` optional).
    """
    if _engine is None:
        return {"status": "error", "errors": ["No engine"]}

    errors = []
    strategy_type = _parse_strategy_type(body.get("strategy"))
    if strategy_type is None:
        errors.append(f"Unknown strategy: {body.get('strategy')}")

    profitable = body.get("profitable")
    if not isinstance(profitable, bool):
        errors.append("profitable must be true or false")

    return_pct = None
    try:
        return_pct = float(body["return_pct"])
        if not math.isfinite(return_pct):
            errors.append("return_pct must be finite")
    except KeyError:
        errors.append("return_pct is required")
    except (TypeError, ValueError):
        errors.append("return_pct must be a number")

    holding_minutes = body.get("holding_minutes")
    if holding_minutes is not None:
        try:
            holding_minutes = float(holding_minutes)
            if not math.isfinite(holding_minutes) or holding_minutes < 0:
                errors.append("holding_minutes must be non-negative")
        except (TypeError, ValueError):
            errors.append("holding_minutes must be a number")

    if errors:
        return {"status": "error", "errors": errors}

    row = _engine.record_outcome(strategy_type, profitable, return_pct, holding_minutes)
    return {"status": "ok", "performance": _performance_dict(row)}
