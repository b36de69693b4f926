"""Tests for tradescan.strategy.market_hours — NSE session filter."""

from datetime import datetime, timezone

import pytest

from tradescan.strategy.market_hours import (
    MARKET_TZ,
    MarketStatus,
    get_market_status,
    is_trading_time,
    minutes_to_market_event,
)


def _ist(day, hour, minute):
    # March 2025: the 3rd is a Monday, the 7th a Friday, the 8th a Saturday
    return datetime(2025, 3, day, hour, minute, tzinfo=MARKET_TZ)


class TestMarketStatus:
    @pytest.mark.parametrize(
        "hour, minute, expected",
        [
            (8, 59, MarketStatus.CLOSED),
            (9, 0, MarketStatus.PRE_MARKET),
            (9, 14, MarketStatus.PRE_MARKET),
            (9, 15, MarketStatus.OPEN),
            (15, 30, MarketStatus.OPEN),
            (15, 31, MarketStatus.CLOSED),
        ],
    )
    def test_weekday_boundaries(self, hour, minute, expected):
        assert get_market_status(_ist(3, hour, minute)).status is expected

    def test_weekend_closed(self):
        info = get_market_status(_ist(8, 11, 0))
        assert info.status is MarketStatus.CLOSED
        assert info.is_trading_day is False
        assert "Weekend" in info.status_message

    def test_utc_input_converted(self):
        # 04:30 UTC is 10:00 IST
        assert is_trading_time(datetime(2025, 3, 3, 4, 30, tzinfo=timezone.utc))
        # 10:30 UTC is 16:00 IST
        assert not is_trading_time(datetime(2025, 3, 3, 10, 30, tzinfo=timezone.utc))

    def test_naive_input_is_exchange_time(self):
        assert is_trading_time(datetime(2025, 3, 3, 10, 0))


class TestMinutesToEvent:
    def test_before_open(self):
        assert minutes_to_market_event(_ist(3, 9, 0)) == 15

    def test_during_session_counts_to_close(self):
        assert minutes_to_market_event(_ist(3, 15, 0)) == 30

    def test_after_close_counts_to_next_open(self):
        # 16:00 → 09:15 next day
        assert minutes_to_market_event(_ist(3, 16, 0)) == 17 * 60 + 15

    def test_friday_evening_skips_weekend(self):
        assert minutes_to_market_event(_ist(7, 16, 0)) == 2 * 24 * 60 + 17 * 60 + 15
