"""Tests for the HTTP surface: tradescan.api.routers and tradescan.main."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from tradescan.api.routers import configure_routers, publish_batch
from tradescan.config import AppConfig, EngineConfig
from tradescan.engine import StrategyEngine
from tradescan.main import app, build_engine
from tradescan.strategy.models import EnrichedSnapshot, StrategyType

client = TestClient(app)

NOW = datetime(2025, 3, 3, 4, 30, tzinfo=timezone.utc)


# ── Helpers ──────────────────────────────────────────────────────────────


def _make_snapshot(symbol, **overrides):
    defaults = dict(
        symbol=symbol,
        current_price=110.0,
        volume=200_000,
        avg_volume=100_000,
        volume_ratio=2.0,
        rsi_14=25.0,
        vwap=108.0,
        atr_14=1.0,
    )
    defaults.update(overrides)
    return EnrichedSnapshot(**defaults)


@pytest.fixture
def engine():
    # The TCS setup is VWAP-led with risk:reward near 1.1.
    engine = StrategyEngine(EngineConfig(min_risk_reward=1.0))
    configure_routers(engine)
    return engine


@pytest.fixture
def published(engine):
    result = engine.generate_setups(
        [_make_snapshot("TCS.NS"), _make_snapshot("QUIET.NS", rsi_14=50.0, vwap=110.0)],
        {"TCS.NS": [], "QUIET.NS": []},
        now=NOW,
    )
    publish_batch(result, published_at=NOW)
    return result


# ── Read endpoints ───────────────────────────────────────────────────────


class TestHealth:
    def test_health(self):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestSetupsEndpoint:
    def test_empty_before_first_batch(self, engine):
        data = client.get("/setups").json()
        assert data["setups"] == []
        assert data["published_at"] is None

    def test_returns_published_setups(self, published):
        data = client.get("/setups").json()
        assert data["published_at"] == NOW.isoformat()
        assert [s["symbol"] for s in data["setups"]] == ["TCS.NS"]
        setup = data["setups"][0]
        assert setup["primary_signal"] == "BUY"
        assert setup["technical_confluence"] == len(setup["supporting_signals"])

    def test_min_confidence_filter(self, published):
        data = client.get("/setups", params={"min_confidence": 0.99}).json()
        assert data["setups"] == []

    def test_min_confidence_validated(self, published):
        assert client.get("/setups", params={"min_confidence": 2}).status_code == 422


class TestSignalsEndpoint:
    def test_symbol_signals(self, published):
        data = client.get("/signals/TCS.NS").json()
        assert data["symbol"] == "TCS.NS"
        assert {s["strategy"] for s in data["signals"]} == {"VWAP", "RSI"}
        assert all("score" in s for s in data["signals"])

    def test_symbol_without_signals(self, published):
        assert client.get("/signals/QUIET.NS").json()["signals"] == []

    def test_unknown_symbol(self, published):
        assert "error" in client.get("/signals/NOPE.NS").json()


# ── Strategy switches ────────────────────────────────────────────────────


class TestStrategiesEndpoint:
    def test_lists_strategies(self, engine):
        data = client.get("/strategies").json()
        assert [s["name"] for s in data["strategies"]] == engine.available_strategies()
        assert all(s["enabled"] for s in data["strategies"])

    def test_disable_and_enable(self, engine):
        assert client.post("/strategies/rsi/disable").json()["status"] == "disabled"
        assert "rsi" not in engine.active_strategies()
        assert client.post("/strategies/rsi/enable").json()["status"] == "enabled"
        assert "rsi" in engine.active_strategies()

    def test_unknown_strategy(self, engine):
        assert "error" in client.post("/strategies/macd/disable").json()


# ── Outcomes and performance ─────────────────────────────────────────────


class TestOutcomes:
    def test_record_outcome(self, engine):
        resp = client.post(
            "/outcomes",
            json={"strategy": "VWAP", "profitable": True, "return_pct": 1.8, "holding_minutes": 45},
        )
        data = resp.json()
        assert data["status"] == "ok"
        assert data["performance"]["total_signals"] == 1
        assert engine.performance_stats()[StrategyType.VWAP].win_rate == 1.0

    def test_accepts_display_label(self, engine):
        client.post("/outcomes", json={"strategy": "Volume Spike", "profitable": False, "return_pct": -0.5})
        assert StrategyType.VOLUME_SPIKE in engine.performance_stats()

    def test_validation_errors(self, engine):
        data = client.post(
            "/outcomes", json={"strategy": "MAGIC", "profitable": "yes", "holding_minutes": -1}
        ).json()
        assert data["status"] == "error"
        assert len(data["errors"]) == 4
        assert engine.performance_stats() == {}

    def test_performance_endpoint(self, engine):
        engine.record_outcome(StrategyType.ORB, True, 2.0)
        engine.record_outcome(StrategyType.ORB, False, -1.0)
        data = client.get("/performance").json()
        [row] = data["performance"]
        assert row["strategy"] == "ORB"
        assert row["win_rate"] == pytest.approx(0.5)
        assert row["min_return"] == -1.0


class TestBuildEngine:
    def test_wires_engine_into_routers(self):
        engine = build_engine(AppConfig(engine=EngineConfig(strategy_enabled={"orb": False})))
        data = client.get("/strategies").json()
        states = {s["name"]: s["enabled"] for s in data["strategies"]}
        assert states["orb"] is False
        assert engine.active_strategies() == ["vwap", "rsi", "breakout", "volume_spike"]
