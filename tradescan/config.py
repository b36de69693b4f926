"""TradeScan — application configuration.

Loads .env variables (and an optional strategies JSON file) into typed
config objects.  Validates values on load.
"""

import json
import os
import pathlib
from dataclasses import dataclass, field
from typing import Any, Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class EnrichmentConfig:
    """Thresholds used when turning a raw quote into an enriched snapshot."""

    volume_spike_ratio: float = 1.5
    breakout_buffer: float = 0.001
    near_level_pct: float = 0.02
    sr_lookback: int = 20
    max_valid_price: float = 1_000_000.0
    max_change_percent: float = 100.0
    max_symbol_length: int = 50


@dataclass(frozen=True)
class EngineConfig:
    """Strategy engine settings.

    ``strategy_enabled`` maps registry keys to on/off flags (missing keys
    mean enabled).  ``strategy_params`` maps registry keys to keyword
    overrides for that strategy's parameter dataclass.
    """

    confidence_threshold: float = 0.6
    min_risk_reward: float = 1.5
    max_signals_per_stock: int = 3
    signal_validity_minutes: int = 30
    setup_validity_minutes: int = 30
    strategy_enabled: dict[str, bool] = field(default_factory=dict)
    strategy_params: dict[str, dict[str, Any]] = field(default_factory=dict)
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)


@dataclass(frozen=True)
class AppConfig:
    """Top-level configuration for the service entry point."""

    engine: EngineConfig
    log_level: str = "INFO"
    api_host: str = "127.0.0.1"
    api_port: int = 8080


def validate_engine_config(config: EngineConfig) -> EngineConfig:
    """Return *config* unchanged, or raise ``ValueError`` naming the bad field."""
    if not 0.0 <= config.confidence_threshold <= 1.0:
        raise ValueError(
            f"confidence_threshold must be within [0, 1], got {config.confidence_threshold}"
        )
    if config.min_risk_reward < 0:
        raise ValueError(
            f"min_risk_reward must be non-negative, got {config.min_risk_reward}"
        )
    if config.max_signals_per_stock < 1:
        raise ValueError(
            f"max_signals_per_stock must be at least 1, got {config.max_signals_per_stock}"
        )
    if config.signal_validity_minutes < 0:
        raise ValueError(
            f"signal_validity_minutes must be non-negative, got {config.signal_validity_minutes}"
        )
    if config.setup_validity_minutes < 0:
        raise ValueError(
            f"setup_validity_minutes must be non-negative, got {config.setup_validity_minutes}"
        )
    if config.enrichment.volume_spike_ratio <= 0:
        raise ValueError(
            f"volume_spike_ratio must be positive, got {config.enrichment.volume_spike_ratio}"
        )
    return config


def load_strategy_file(
    path: str | pathlib.Path,
) -> tuple[dict[str, bool], dict[str, dict[str, Any]]]:
    """Read per-strategy switches and threshold overrides from JSON.

    Expected shape::

        {"strategies": {"vwap": {"enabled": false, "min_volume_ratio": 1.4}}}

    Returns ``(enabled, params)``.  Raises ``ValueError`` if the file is
    not an object of objects.
    """
    data = json.loads(pathlib.Path(path).read_text(encoding="utf-8"))
    strategies = data.get("strategies", {}) if isinstance(data, dict) else None
    if not isinstance(strategies, dict):
        raise ValueError(f"{path}: 'strategies' must be an object")

    enabled: dict[str, bool] = {}
    params: dict[str, dict[str, Any]] = {}
    for key, entry in strategies.items():
        if not isinstance(entry, dict):
            raise ValueError(f"{path}: strategy '{key}' must be an object")
        entry = dict(entry)
        if "enabled" in entry:
            enabled[key] = bool(entry.pop("enabled"))
        if entry:
            params[key] = entry
    return enabled, params


def _env_float(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'") from None


def _env_int(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from None


def load_config(env_path: Optional[str] = None) -> AppConfig:
    """Load configuration from environment variables.

    No variable is required; every setting has a default.  Raises
    ``ValueError`` with a message naming the variable when a value cannot
    be parsed or is out of range.
    """
    load_dotenv(dotenv_path=env_path)

    enabled: dict[str, bool] = {}
    params: dict[str, dict[str, Any]] = {}
    strategies_file = os.environ.get("TRADESCAN_STRATEGIES_FILE")
    if strategies_file:
        enabled, params = load_strategy_file(strategies_file)

    disabled = os.environ.get("TRADESCAN_DISABLED_STRATEGIES", "")
    for key in (k.strip() for k in disabled.split(",")):
        if key:
            enabled[key] = False

    enrichment = EnrichmentConfig(
        volume_spike_ratio=_env_float("TRADESCAN_VOLUME_SPIKE_RATIO", "1.5"),
        breakout_buffer=_env_float("TRADESCAN_BREAKOUT_BUFFER", "0.001"),
        near_level_pct=_env_float("TRADESCAN_NEAR_LEVEL_PCT", "0.02"),
        sr_lookback=_env_int("TRADESCAN_SR_LOOKBACK", "20"),
    )

    engine = validate_engine_config(
        EngineConfig(
            confidence_threshold=_env_float("TRADESCAN_CONFIDENCE_THRESHOLD", "0.6"),
            min_risk_reward=_env_float("TRADESCAN_MIN_RISK_REWARD", "1.5"),
            max_signals_per_stock=_env_int("TRADESCAN_MAX_SIGNALS_PER_STOCK", "3"),
            signal_validity_minutes=_env_int("TRADESCAN_SIGNAL_VALIDITY_MINUTES", "30"),
            setup_validity_minutes=_env_int("TRADESCAN_SETUP_VALIDITY_MINUTES", "30"),
            strategy_enabled=enabled,
            strategy_params=params,
            enrichment=enrichment,
        )
    )

    return AppConfig(
        engine=engine,
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        api_host=os.environ.get("API_HOST", "127.0.0.1"),
        api_port=_env_int("API_PORT", "8080"),
    )
