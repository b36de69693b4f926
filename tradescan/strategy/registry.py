"""Strategy registry — maps strategy keys to classes and their parameters.

Used by StrategyEngine to build the default strategy set from EngineConfig.
"""

from typing import Any, Optional

from tradescan.strategy.base import StrategyProtocol
from tradescan.strategy.breakout import BreakoutParams, BreakoutStrategy
from tradescan.strategy.orb import ORBParams, OpeningRangeBreakoutStrategy
from tradescan.strategy.rsi_reversal import RSIParams, RSIStrategy
from tradescan.strategy.volume_spike import VolumeSpikeParams, VolumeSpikeStrategy
from tradescan.strategy.vwap import VWAPParams, VWAPStrategy


# Declaration order is the tie-break order for equal-confidence signals.
STRATEGY_REGISTRY: dict[str, tuple[type, type]] = {
    "orb": (OpeningRangeBreakoutStrategy, ORBParams),
    "vwap": (VWAPStrategy, VWAPParams),
    "rsi": (RSIStrategy, RSIParams),
    "breakout": (BreakoutStrategy, BreakoutParams),
    "volume_spike": (VolumeSpikeStrategy, VolumeSpikeParams),
}


def get_strategy(key: str, **params: Any) -> StrategyProtocol:
    """Look up and instantiate a strategy by registry key.

    Keyword arguments override fields of that strategy's params dataclass.
    Raises ``KeyError`` if the key is not registered and ``TypeError`` for
    an unknown parameter name.
    """
    if key not in STRATEGY_REGISTRY:
        raise KeyError(
            f"Unknown strategy '{key}'. "
            f"Available: {', '.join(STRATEGY_REGISTRY.keys())}"
        )
    strategy_cls, params_cls = STRATEGY_REGISTRY[key]
    return strategy_cls(params_cls(**params))


def build_default_strategies(
    overrides: Optional[dict[str, dict[str, Any]]] = None,
) -> list[StrategyProtocol]:
    """All registered strategies in declaration order.

    *overrides* maps registry keys to parameter overrides.  Keys that are
    not registered raise ``KeyError`` so a typo in configuration is caught
    at startup.
    """
    overrides = overrides or {}
    unknown = [k for k in overrides if k not in STRATEGY_REGISTRY]
    if unknown:
        raise KeyError(
            f"Unknown strategy '{unknown[0]}' in overrides. "
            f"Available: {', '.join(STRATEGY_REGISTRY.keys())}"
        )
    return [get_strategy(key, **overrides.get(key, {})) for key in STRATEGY_REGISTRY]
