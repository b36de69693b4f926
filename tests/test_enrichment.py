"""Tests for tradescan.strategy.enrichment — quote enrichment and sanitisation."""

import math

import numpy as np
import pytest

from tradescan.config import EnrichmentConfig
from tradescan.strategy.enrichment import UNKNOWN_SYMBOL, enrich_quote, sanitize_snapshot
from tradescan.strategy.models import CandleData, EnrichedSnapshot, Quote


# ── Helpers ──────────────────────────────────────────────────────────────


def _make_candles(n=30, base=100.0, step=0.5):
    return [
        CandleData(
            time=f"2025-03-03T{9 + i // 60:02d}:{i % 60:02d}:00",
            open=base + i * step,
            high=base + i * step + 1.0,
            low=base + i * step - 1.0,
            close=base + i * step,
            volume=10_000,
        )
        for i in range(n)
    ]


def _make_quote(**overrides):
    defaults = dict(
        symbol="RELIANCE.NS",
        price=120.0,
        previous_close=115.0,
        day_high=121.0,
        day_low=114.0,
        volume=200_000,
        avg_volume=100_000,
        market_cap=1.5e12,
    )
    defaults.update(overrides)
    return Quote(**defaults)


# ── enrich_quote ─────────────────────────────────────────────────────────


class TestEnrichQuote:
    def test_derives_change_and_volume_ratio(self):
        snap = enrich_quote(_make_quote(), _make_candles())
        assert snap.change == pytest.approx(5.0)
        assert snap.change_percent == pytest.approx(5.0 / 115.0 * 100)
        assert snap.volume_ratio == pytest.approx(2.0)
        assert snap.volume_spike is True

    def test_keeps_supplied_change(self):
        snap = enrich_quote(_make_quote(change=1.0, change_percent=0.5), _make_candles())
        assert snap.change == 1.0
        assert snap.change_percent == 0.5

    def test_indicator_set_populated(self):
        candles = _make_candles()
        snap = enrich_quote(_make_quote(), candles)
        assert snap.sma_20 > 0
        assert snap.ema_9 > 0
        assert snap.vwap > 0
        assert snap.atr_14 > 0
        assert snap.rsi_14 == 100.0
        assert snap.support_level == pytest.approx(min(c.low for c in candles[-20:]))
        assert snap.resistance_level == pytest.approx(max(c.high for c in candles[-20:]))

    def test_breakout_above_resistance_on_volume(self):
        candles = _make_candles()
        resistance = max(c.high for c in candles[-20:])
        snap = enrich_quote(_make_quote(price=resistance * 1.01), candles)
        assert snap.is_breakout is True
        assert snap.is_breakdown is False

    def test_no_breakout_without_volume_spike(self):
        candles = _make_candles()
        resistance = max(c.high for c in candles[-20:])
        snap = enrich_quote(
            _make_quote(price=resistance * 1.01, volume=100_000), candles
        )
        assert snap.volume_spike is False
        assert snap.is_breakout is False

    def test_near_levels(self):
        candles = _make_candles()
        resistance = max(c.high for c in candles[-20:])
        snap = enrich_quote(_make_quote(price=resistance * 0.99), candles)
        assert snap.near_resistance is True

    def test_short_history_gives_neutral_snapshot(self):
        snap = enrich_quote(_make_quote(), _make_candles(n=3))
        assert snap.rsi_14 == 50.0
        assert snap.sma_20 == 0.0
        assert snap.support_level == 0.0
        assert snap.resistance_level == 0.0
        assert snap.is_breakout is False
        assert snap.near_support is False

    def test_zero_average_volume_ratio_is_one(self):
        snap = enrich_quote(_make_quote(avg_volume=0), _make_candles())
        assert snap.volume_ratio == 1.0
        assert snap.volume_spike is False

    def test_custom_thresholds(self):
        config = EnrichmentConfig(volume_spike_ratio=3.0)
        snap = enrich_quote(_make_quote(), _make_candles(), config)
        assert snap.volume_spike is False

    def test_numpy_scalars_accepted(self):
        snap = enrich_quote(
            _make_quote(price=np.float64(120.0), volume=np.int64(200_000)),
            _make_candles(),
        )
        assert snap.current_price == 120.0
        assert snap.volume == 200_000


# ── sanitize_snapshot ────────────────────────────────────────────────────


class TestSanitizeSnapshot:
    def test_invalid_price_becomes_zero(self):
        for bad in (-5.0, float("nan"), float("inf"), 2e6):
            snap = sanitize_snapshot(EnrichedSnapshot(symbol="TCS.NS", current_price=bad))
            assert snap.current_price == 0.0

    def test_invalid_symbol_placeholder(self):
        assert sanitize_snapshot(EnrichedSnapshot("", 10.0)).symbol == UNKNOWN_SYMBOL
        assert sanitize_snapshot(EnrichedSnapshot("X" * 60, 10.0)).symbol == UNKNOWN_SYMBOL

    def test_rsi_out_of_range_becomes_fifty(self):
        for bad in (-1.0, 101.0, float("nan")):
            snap = sanitize_snapshot(EnrichedSnapshot("TCS.NS", 10.0, rsi_14=bad))
            assert snap.rsi_14 == 50.0

    def test_excessive_change_percent_reset(self):
        snap = sanitize_snapshot(EnrichedSnapshot("TCS.NS", 10.0, change_percent=150.0))
        assert snap.change_percent == 0.0
        snap = sanitize_snapshot(EnrichedSnapshot("TCS.NS", 10.0, change_percent=-99.0))
        assert snap.change_percent == -99.0

    def test_non_finite_indicators_zeroed(self):
        snap = sanitize_snapshot(
            EnrichedSnapshot("TCS.NS", 10.0, vwap=float("nan"), atr_14=float("inf"))
        )
        assert snap.vwap == 0.0
        assert snap.atr_14 == 0.0

    def test_valid_snapshot_unchanged(self):
        snap = EnrichedSnapshot("TCS.NS", 3500.0, previous_close=3450.0, rsi_14=62.0, vwap=3490.0)
        assert sanitize_snapshot(snap) == snap

    def test_output_always_finite(self):
        snap = sanitize_snapshot(
            EnrichedSnapshot(
                "TCS.NS",
                float("nan"),
                change=float("inf"),
                volume_ratio=float("nan"),
                sma_20=float("-inf"),
            )
        )
        assert all(
            math.isfinite(getattr(snap, f))
            for f in ("current_price", "change", "volume_ratio", "sma_20")
        )
