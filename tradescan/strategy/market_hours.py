"""Market-hours filter — pure functions over an explicit timestamp.

Defaults describe the NSE cash session: pre-open from 09:00, regular
trading 09:15–15:30 (inclusive) in Asia/Kolkata, closed on weekends.
Holidays are not modelled.
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum
from zoneinfo import ZoneInfo


MARKET_TZ = ZoneInfo("Asia/Kolkata")
PRE_MARKET_START = time(9, 0)
MARKET_OPEN = time(9, 15)
MARKET_CLOSE = time(15, 30)


class MarketStatus(Enum):
    PRE_MARKET = "PRE_MARKET"
    OPEN = "OPEN"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class MarketInfo:
    status: MarketStatus
    is_trading_day: bool
    status_message: str
    local_time: datetime


def _local(now: datetime, tz: ZoneInfo) -> datetime:
    """Convert *now* to the exchange zone; naive values are taken as exchange time."""
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def get_market_status(
    now: datetime,
    tz: ZoneInfo = MARKET_TZ,
    pre_market_start: time = PRE_MARKET_START,
    market_open: time = MARKET_OPEN,
    market_close: time = MARKET_CLOSE,
) -> MarketInfo:
    """Classify *now* as pre-market, open or closed."""
    local = _local(now, tz)
    if local.weekday() >= 5:
        return MarketInfo(MarketStatus.CLOSED, False, "Weekend - Market Closed", local)

    current = local.hour * 60 + local.minute
    if current < _minutes(pre_market_start):
        status, message = MarketStatus.CLOSED, "Market Closed"
    elif current < _minutes(market_open):
        status, message = MarketStatus.PRE_MARKET, "Pre-Market Session"
    elif current <= _minutes(market_close):
        status, message = MarketStatus.OPEN, "Market Open"
    else:
        status, message = MarketStatus.CLOSED, "Market Closed"
    return MarketInfo(status, True, message, local)


def is_trading_time(now: datetime, tz: ZoneInfo = MARKET_TZ) -> bool:
    """Return True during the regular session of a weekday.

    Args:
        now: Timestamp to classify.  Aware values are converted to *tz*.
        tz: Exchange time zone.
    """
    return get_market_status(now, tz).status is MarketStatus.OPEN


def minutes_to_market_event(
    now: datetime,
    tz: ZoneInfo = MARKET_TZ,
    market_open: time = MARKET_OPEN,
    market_close: time = MARKET_CLOSE,
) -> int:
    """Minutes until the next open, or until the close while the market is open.

    Weekends are skipped: on Friday evening the next event is Monday's open.
    """
    local = _local(now, tz)
    current = local.hour * 60 + local.minute
    trading_day = local.weekday() < 5

    if trading_day and current < _minutes(market_open):
        return _minutes(market_open) - current
    if trading_day and current <= _minutes(market_close):
        return _minutes(market_close) - current

    next_day = local.date() + timedelta(days=1)
    while next_day.weekday() >= 5:
        next_day += timedelta(days=1)
    next_open = datetime.combine(next_day, market_open, tzinfo=tz)
    start = local.replace(second=0, microsecond=0)
    return int((next_open - start).total_seconds() // 60)
