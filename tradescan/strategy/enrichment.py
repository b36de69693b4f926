"""Quote enrichment — turns a raw quote plus its candle history into a snapshot.

Sanitisation happens here, at the boundary, so strategies never see
non-finite or out-of-range values.
"""

import dataclasses
import logging
import math
import numbers
from typing import Optional, Sequence

from tradescan.config import EnrichmentConfig
from tradescan.strategy.indicators import (
    calculate_atr,
    calculate_bollinger,
    calculate_ema,
    calculate_rsi,
    calculate_sma,
    calculate_vwap,
    find_resistance,
    find_support,
)
from tradescan.strategy.models import CandleData, EnrichedSnapshot, Quote

logger = logging.getLogger("tradescan.enrichment")

UNKNOWN_SYMBOL = "UNKNOWN"

_INDICATOR_FIELDS = (
    "sma_20",
    "sma_50",
    "ema_9",
    "ema_21",
    "vwap",
    "atr_14",
    "bollinger_upper",
    "bollinger_lower",
    "support_level",
    "resistance_level",
)


def _is_valid_price(value: float, config: EnrichmentConfig) -> bool:
    return isinstance(value, numbers.Real) and math.isfinite(value) and 0 < value < config.max_valid_price


def _clean_price(symbol: str, name: str, value: float, config: EnrichmentConfig) -> float:
    if _is_valid_price(value, config):
        return float(value)
    if value:
        logger.debug("%s: invalid %s %r replaced with 0", symbol, name, value)
    return 0.0


def _clean_volume(symbol: str, name: str, value) -> int:
    if isinstance(value, numbers.Real) and math.isfinite(value) and value >= 0:
        return int(value)
    logger.debug("%s: invalid %s %r replaced with 0", symbol, name, value)
    return 0


def _clean_symbol(symbol: str, config: EnrichmentConfig) -> str:
    if symbol and len(symbol) < config.max_symbol_length:
        return symbol
    logger.debug("Invalid symbol %r replaced with %s", symbol, UNKNOWN_SYMBOL)
    return UNKNOWN_SYMBOL


def _finite_or_zero(value: float) -> float:
    return float(value) if math.isfinite(value) else 0.0


def sanitize_snapshot(
    snapshot: EnrichedSnapshot,
    config: Optional[EnrichmentConfig] = None,
) -> EnrichedSnapshot:
    """Clamp every field of *snapshot* into its safe range.

    - invalid price / previous close → 0
    - invalid symbol → ``"UNKNOWN"``
    - |change %| above the limit → 0
    - RSI outside [0, 100] or non-finite → 50
    - any other non-finite indicator → 0
    """
    config = config or EnrichmentConfig()
    symbol = _clean_symbol(snapshot.symbol, config)
    changes: dict = {
        "symbol": symbol,
        "current_price": _clean_price(symbol, "price", snapshot.current_price, config),
        "previous_close": _clean_price(symbol, "previous close", snapshot.previous_close, config),
        "day_high": _clean_price(symbol, "day high", snapshot.day_high, config),
        "day_low": _clean_price(symbol, "day low", snapshot.day_low, config),
        "volume": _clean_volume(symbol, "volume", snapshot.volume),
        "avg_volume": _clean_volume(symbol, "average volume", snapshot.avg_volume),
    }

    change = _finite_or_zero(snapshot.change)
    change_pct = _finite_or_zero(snapshot.change_percent)
    if abs(change_pct) > config.max_change_percent:
        logger.debug("%s: change%% %.2f out of range, reset to 0", symbol, change_pct)
        change_pct = 0.0
    changes["change"] = change
    changes["change_percent"] = change_pct

    ratio = snapshot.volume_ratio
    changes["volume_ratio"] = float(ratio) if math.isfinite(ratio) and ratio >= 0 else 1.0

    rsi = snapshot.rsi_14
    if not math.isfinite(rsi) or rsi < 0 or rsi > 100:
        logger.debug("%s: RSI %r out of range, reset to 50", symbol, rsi)
        rsi = 50.0
    changes["rsi_14"] = rsi

    for name in _INDICATOR_FIELDS:
        changes[name] = _finite_or_zero(getattr(snapshot, name))

    return dataclasses.replace(snapshot, **changes)


def enrich_quote(
    quote: Quote,
    candles: Sequence[CandleData],
    config: Optional[EnrichmentConfig] = None,
) -> EnrichedSnapshot:
    """Build an ``EnrichedSnapshot`` from *quote* and its candle history.

    Indicators that need more history than supplied come back as their
    neutral defaults (see ``indicators``); the derived flags guard against
    those zero levels so an unavailable resistance never reads as a
    breakout.
    """
    config = config or EnrichmentConfig()
    symbol = _clean_symbol(quote.symbol, config)
    price = _clean_price(symbol, "price", quote.price, config)
    prev_close = _clean_price(symbol, "previous close", quote.previous_close, config)
    volume = _clean_volume(symbol, "volume", quote.volume)
    avg_volume = _clean_volume(symbol, "average volume", quote.avg_volume)

    change = quote.change
    change_pct = quote.change_percent
    if change is None:
        change = price - prev_close if prev_close > 0 and price > 0 else 0.0
    if change_pct is None:
        change_pct = (change / prev_close) * 100.0 if prev_close > 0 else 0.0

    volume_ratio = volume / avg_volume if avg_volume > 0 else 1.0
    volume_spike = volume_ratio > config.volume_spike_ratio

    bands = calculate_bollinger(candles, 20, 2.0)
    support = find_support(candles, config.sr_lookback)
    resistance = find_resistance(candles, config.sr_lookback)

    snapshot = sanitize_snapshot(
        EnrichedSnapshot(
            symbol=symbol,
            current_price=price,
            previous_close=prev_close,
            change=float(change),
            change_percent=float(change_pct),
            volume=volume,
            avg_volume=avg_volume,
            volume_ratio=volume_ratio,
            day_high=quote.day_high,
            day_low=quote.day_low,
            market_cap=quote.market_cap if math.isfinite(quote.market_cap) else 0.0,
            name=quote.name or symbol,
            rsi_14=calculate_rsi(candles, 14),
            sma_20=calculate_sma(candles, 20),
            sma_50=calculate_sma(candles, 50),
            ema_9=calculate_ema(candles, 9),
            ema_21=calculate_ema(candles, 21),
            vwap=calculate_vwap(candles),
            atr_14=calculate_atr(candles, 14),
            bollinger_upper=bands.upper,
            bollinger_lower=bands.lower,
            support_level=support,
            resistance_level=resistance,
            volume_spike=volume_spike,
        ),
        config,
    )

    return dataclasses.replace(snapshot, **_level_flags(snapshot, config))


def _level_flags(snapshot: EnrichedSnapshot, config: EnrichmentConfig) -> dict[str, bool]:
    price = snapshot.current_price
    support = snapshot.support_level
    resistance = snapshot.resistance_level
    buffer = config.breakout_buffer

    return {
        "is_breakout": (
            resistance > 0 and price > resistance * (1 + buffer) and snapshot.volume_spike
        ),
        "is_breakdown": (
            support > 0 and 0 < price < support * (1 - buffer) and snapshot.volume_spike
        ),
        "near_support": support > 0 and abs(price - support) / support < config.near_level_pct,
        "near_resistance": (
            resistance > 0 and abs(price - resistance) / resistance < config.near_level_pct
        ),
    }
