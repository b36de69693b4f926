"""Market scan — ranked views over one batch of enriched snapshots."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from tradescan.strategy.models import EnrichedSnapshot


@dataclass(frozen=True)
class MarketScan:
    top_gainers: tuple[EnrichedSnapshot, ...] = ()
    top_losers: tuple[EnrichedSnapshot, ...] = ()
    high_volume: tuple[EnrichedSnapshot, ...] = ()
    breakout_candidates: tuple[EnrichedSnapshot, ...] = ()
    breakdown_candidates: tuple[EnrichedSnapshot, ...] = ()
    near_support: tuple[EnrichedSnapshot, ...] = ()
    near_resistance: tuple[EnrichedSnapshot, ...] = ()
    scan_time: Optional[datetime] = None


def build_market_scan(
    snapshots: Iterable[EnrichedSnapshot],
    top_n: int = 10,
    now: Optional[datetime] = None,
) -> MarketScan:
    """Build the scan lists from *snapshots*.

    Gainers and losers only include symbols that actually moved in that
    direction.  Ranked lists are capped at *top_n*; equal values keep
    input order.  Flag-based lists are uncapped.
    """
    items = list(snapshots)
    gainers = sorted(
        (s for s in items if s.change_percent > 0),
        key=lambda s: s.change_percent,
        reverse=True,
    )
    losers = sorted(
        (s for s in items if s.change_percent < 0),
        key=lambda s: s.change_percent,
    )
    high_volume = sorted(
        (s for s in items if s.volume_ratio > 1.0),
        key=lambda s: s.volume_ratio,
        reverse=True,
    )
    return MarketScan(
        top_gainers=tuple(gainers[:top_n]),
        top_losers=tuple(losers[:top_n]),
        high_volume=tuple(high_volume[:top_n]),
        breakout_candidates=tuple(s for s in items if s.is_breakout),
        breakdown_candidates=tuple(s for s in items if s.is_breakdown),
        near_support=tuple(s for s in items if s.near_support),
        near_resistance=tuple(s for s in items if s.near_resistance),
        scan_time=now or datetime.now(timezone.utc),
    )
