"""
Market Statistics — summary numbers over the pool store

Recomputed from scratch each scan over pools with at least the minimum
native liquidity.  The median is the element at index n // 2 of the
ascending-sorted set (upper median for even n).  If no pool passes the
filter the previous stats are kept as they are.

Populations: total_pools counts every pool in the store (tracked pools);
the liquidity figures and new_pools_24h cover only the liquid pools, so a
freshly created pool still below the minimum is not reported as new.
"""
import time
from dataclasses import dataclass
from typing import Optional


@dataclass
class MarketStats:
    total_pools: int = 0
    total_liquidity: float = 0.0
    median_liquidity: float = 0.0
    average_liquidity: float = 0.0
    min_liquidity: float = 0.0
    max_liquidity: float = 0.0
    new_pools_24h: int = 0
    last_updated: float = 0.0


class MarketStatsAggregator:
    """Holds the latest MarketStats and recomputes them from a PoolStore."""

    def __init__(self, new_pool_window_sec: float = 86400):
        self.new_pool_window_sec = new_pool_window_sec
        self.stats = MarketStats()

    def recompute(self, store, min_liquidity: float, now: Optional[float] = None) -> MarketStats:
        now = time.time() if now is None else now
        pools = store.all()
        liquid = [p for p in pools if p.reserves.native >= min_liquidity]
        if not liquid:
            return self.stats

        liquid.sort(key=lambda p: p.reserves.native)
        values = [p.reserves.native for p in liquid]
        total = sum(values)
        cutoff = now - self.new_pool_window_sec

        self.stats = MarketStats(
            total_pools=len(pools),
            total_liquidity=total,
            median_liquidity=values[len(values) // 2],
            average_liquidity=total / len(values),
            min_liquidity=values[0],
            max_liquidity=values[-1],
            new_pools_24h=sum(1 for p in liquid if (p.first_seen or p.timestamp) > cutoff),
            last_updated=now,
        )
        return self.stats
