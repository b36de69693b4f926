"""Tests for signal scoring utilities and the risk helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from tradescan.risk.position_sizer import calculate_position_size
from tradescan.risk.risk_reward import calculate_risk_reward
from tradescan.strategy.models import Signal, SignalStrength, SignalType, StrategyType
from tradescan.strategy.scoring import (
    calculate_signal_score,
    filter_signals_by_confidence,
    is_signal_active,
    is_valid_signal,
    minutes_until_expiry,
    rank_signals_by_score,
)

NOW = datetime(2025, 3, 3, 4, 30, tzinfo=timezone.utc)


def _make_signal(**overrides) -> Signal:
    defaults = dict(
        signal_type=SignalType.BUY,
        strategy=StrategyType.VWAP,
        confidence=0.8,
        symbol="TCS.NS",
        strength=SignalStrength.MODERATE,
        entry_price=100.0,
        stop_loss=98.0,
        target_1=104.0,
        target_2=106.0,
    )
    defaults.update(overrides)
    return Signal(**defaults)


# ── Risk helpers ─────────────────────────────────────────────────────────


class TestRiskReward:
    def test_ratio(self):
        assert calculate_risk_reward(100.0, 98.0, 104.0) == pytest.approx(2.0)
        assert calculate_risk_reward(100.0, 102.0, 94.0) == pytest.approx(3.0)

    def test_entry_equals_stop_is_zero(self):
        assert calculate_risk_reward(100.0, 100.0, 104.0) == 0.0

    @pytest.mark.parametrize(
        "entry, stop, target",
        [(0.0, 98.0, 104.0), (100.0, -1.0, 104.0), (100.0, 98.0, 0.0), (float("nan"), 98.0, 104.0)],
    )
    def test_invalid_levels_are_zero(self, entry, stop, target):
        assert calculate_risk_reward(entry, stop, target) == 0.0


class TestPositionSize:
    def test_floor_of_risk_over_distance(self):
        # 100,000 × 1% = 1,000 risk; 3 per share → 333.33 → 333
        assert calculate_position_size(100_000.0, 1.0, 100.0, 97.0) == 333

    def test_invalid_inputs_are_zero(self):
        assert calculate_position_size(100_000.0, 1.0, 100.0, 100.0) == 0
        assert calculate_position_size(0.0, 1.0, 100.0, 97.0) == 0
        assert calculate_position_size(100_000.0, 1.0, 100.0, 0.0) == 0


# ── Scoring ──────────────────────────────────────────────────────────────


class TestSignalScore:
    def test_components(self):
        signal = _make_signal(
            technical_score=0.75,
            volume_confirmation=1.0,
            volume_above_average=True,
            breakout_confirmed=True,
        )
        # 32 + 15 + 15 + 10 + min(15, 2 × 3) = 78, MODERATE × 1.0
        assert calculate_signal_score(signal) == pytest.approx(78.0)

    def test_volume_ignored_when_not_above_average(self):
        signal = _make_signal(volume_confirmation=1.0, volume_above_average=False)
        assert calculate_signal_score(signal) == pytest.approx(32.0 + 6.0)

    def test_strength_multiplier(self):
        weak = calculate_signal_score(_make_signal(strength=SignalStrength.WEAK))
        strong = calculate_signal_score(_make_signal(strength=SignalStrength.VERY_STRONG))
        assert weak == pytest.approx(38.0 * 0.9)
        assert strong == pytest.approx(38.0 * 1.2)

    def test_capped_at_100(self):
        signal = _make_signal(
            confidence=1.0,
            technical_score=1.0,
            volume_confirmation=1.0,
            volume_above_average=True,
            breakout_confirmed=True,
            target_1=120.0,
            strength=SignalStrength.VERY_STRONG,
        )
        assert calculate_signal_score(signal) == 100.0

    def test_rank_by_score_is_stable(self):
        a = _make_signal(description="a")
        b = _make_signal(description="b", confidence=0.9)
        c = _make_signal(description="c")
        assert [s.description for s in rank_signals_by_score([a, b, c])] == ["b", "a", "c"]

    def test_filter_by_confidence(self):
        signals = [_make_signal(confidence=c) for c in (0.5, 0.6, 0.9)]
        assert [s.confidence for s in filter_signals_by_confidence(signals)] == [0.6, 0.9]
        assert len(filter_signals_by_confidence(signals, 0.95)) == 0


# ── Validation and expiry ────────────────────────────────────────────────


class TestValidation:
    def test_valid_buy_and_sell(self):
        assert is_valid_signal(_make_signal())
        assert is_valid_signal(
            _make_signal(signal_type=SignalType.SELL, stop_loss=102.0, target_1=96.0)
        )

    @pytest.mark.parametrize(
        "overrides",
        [
            {"symbol": ""},
            {"entry_price": 0.0},
            {"stop_loss": 0.0},
            {"confidence": 1.2},
            {"stop_loss": 101.0},
            {"target_1": 99.0},
            {"signal_type": SignalType.SELL},
        ],
    )
    def test_invalid(self, overrides):
        assert not is_valid_signal(_make_signal(**overrides))

    def test_unset_target_allowed(self):
        assert is_valid_signal(_make_signal(target_1=0.0))


class TestExpiry:
    def test_active_until_expiry(self):
        signal = _make_signal(expires_at=NOW + timedelta(minutes=30))
        assert is_signal_active(signal, NOW)
        assert minutes_until_expiry(signal, NOW) == 30
        assert minutes_until_expiry(signal, NOW + timedelta(minutes=10, seconds=30)) == 19
        assert not is_signal_active(signal, NOW + timedelta(minutes=31))
        assert minutes_until_expiry(signal, NOW + timedelta(minutes=31)) == 0

    def test_unstamped_signal(self):
        signal = _make_signal()
        assert is_signal_active(signal, NOW)
        assert minutes_until_expiry(signal, NOW) == 0
