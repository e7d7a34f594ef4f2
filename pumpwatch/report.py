"""
Console reports and alerts
"""
import sys
from datetime import datetime
from typing import List

from pumpwatch.analysis.signal_engine import BUY, SELL, STRONG_BUY, STRONG_SELL
from pumpwatch.analysis.token_registry import short_address


SIGNAL_ICONS = {
    STRONG_BUY: "🟢🟢",
    BUY: "🟢",
    SELL: "🔴",
    STRONG_SELL: "🔴🔴",
}


def _ts(timestamp: float) -> str:
    if not timestamp:
        return "—"
    return datetime.fromtimestamp(timestamp).strftime('%H:%M:%S')


def _price_str(price: float) -> str:
    if price <= 0:
        return "unknown"
    if price < 0.0001:
        return f"{price:.10f}"
    return f"{price:.6f}"


def pool_name(pool, registry) -> str:
    return f"{registry.symbol(pool.base_mint)}/{registry.symbol(pool.quote_mint)}"


def print_pool_table(pools: List, registry, limit: int = 15):
    """Print the deepest pools, one line each."""
    pools = sorted(pools, key=lambda p: p.reserves.native, reverse=True)[:limit]
    print(f"\n{'─' * 60}")
    print(f"Top {len(pools)} pools by liquidity")
    print(f"{'─' * 60}")
    if not pools:
        print("  (no pools)")
        return
    for pool in pools:
        arrow = "→"
        prev = pool.previous_state()
        if prev and prev['price'] > 0 and pool.price > 0:
            change = (pool.price - prev['price']) / prev['price'] * 100
            arrow = "↑" if change > 0.5 else "↓" if change < -0.5 else "→"
        print(f"  {pool_name(pool, registry):<22} {arrow} price {_price_str(pool.price):>16} SOL"
              f"  |  liq {pool.reserves.native:>12,.2f} SOL  |  {short_address(pool.address)}")


def print_signals(signals: List, registry, limit: int = 10):
    """Print active non-hold signals, strongest first."""
    actionable = [s for s in signals if s.signal in SIGNAL_ICONS][:limit]
    print(f"\nSignals ({len(actionable)} actionable):")
    if not actionable:
        print("  (none)")
        return
    for s in actionable:
        icon = SIGNAL_ICONS[s.signal]
        print(f"  {icon} {registry.symbol(s.token):<12} {s.signal.upper():<12} "
              f"confidence {s.confidence:.0f}%  @ {_ts(s.timestamp)}")
        for reason in s.reasons:
            print(f"      • {reason}")


def print_market_stats(stats, tracked_tokens: int = 0):
    print(f"\nMarket ({datetime.now().strftime('%Y-%m-%d %H:%M:%S')}):")
    print(f"  Pools: {stats.total_pools}  |  New (24h): {stats.new_pools_24h}  |  Tokens: {tracked_tokens}")
    print(f"  Liquidity: total {stats.total_liquidity:,.2f} SOL  |  avg {stats.average_liquidity:,.2f}"
          f"  |  median {stats.median_liquidity:,.2f}")
    print(f"  ├─ Min: {stats.min_liquidity:,.2f} SOL")
    print(f"  └─ Max: {stats.max_liquidity:,.2f} SOL")


def print_monitor_status(states: dict):
    active = sum(1 for s in states.values() if s.is_active)
    print(f"\nVolume monitor ({len(states)} pools, {active} pinned):")
    for addr, s in states.items():
        pin = "★" if s.is_active else " "
        print(f"  {pin} {short_address(addr)}  buy {s.buy_volume:,.3f} SOL  |  sell {s.sell_volume:,.3f} SOL"
              f"  |  checked {_ts(s.last_checked)}")


def notify(message: str, sound: bool = True):
    """Print an alert line, ringing the terminal bell if sound is on."""
    print(f"🔔 {message}")
    if sound:
        sys.stdout.write("\a")
        sys.stdout.flush()


def notify_significant_volume(pool_address: str, buy_volume: float, sell_volume: float,
                              sound: bool = True):
    side = "BUY" if buy_volume >= sell_volume else "SELL"
    notify(
        f"Significant {side} volume in {short_address(pool_address)}: "
        f"+{buy_volume:.3f} / -{sell_volume:.3f} SOL",
        sound=sound,
    )
