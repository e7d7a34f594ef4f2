"""
Main watcher orchestration and monitoring loop

Threading architecture:
  - Main thread: display only (prints the report every N seconds)
  - Pool scan thread: full program-account rescan every POOL_SCAN_INTERVAL_SEC
  - Volume thread: samples the top-N pools (+ pinned pools) every
    VOLUME_CHECK_INTERVAL_SEC
  - Listener thread: websocket push of new pool accounts

Each shared map (store, registry, signals, monitor states) carries its own
lock, so a push-triggered update can interleave with a rescan per pool.

Simple mode (--simple) only scans and reports: no signals, no volume
monitoring, no websocket subscription.
"""
import argparse
import signal
import sys
import threading
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional

from pumpwatch.config import config
from pumpwatch.rpc_client import SolanaRPC
from pumpwatch.pool_decoder import PoolDecodeError, decode_pool_account
from pumpwatch.pool_listener import PoolListener
from pumpwatch.pool_scanner import PoolScanner
from pumpwatch.analysis.market_stats import MarketStatsAggregator
from pumpwatch.analysis.pool_store import PoolRecord, PoolStore
from pumpwatch.analysis.price_deriver import PriceDeriver
from pumpwatch.analysis.signal_engine import HOLD, SignalEngine, TradingSignal
from pumpwatch.analysis.token_registry import TokenRegistry, short_address
from pumpwatch.analysis.volume_monitor import VolumeMonitor
from pumpwatch import report
from pumpwatch import state


class PoolWatcher:
    def __init__(self, simple: bool = False, target_token: str = None,
                 top_n: int = None, rpc_client=None,
                 on_pool_updated: Callable[[PoolRecord], None] = None,
                 on_signal_computed: Callable[[TradingSignal], None] = None,
                 load_saved: bool = True):
        self.simple = simple
        self.target_token = target_token if target_token is not None else config.TARGET_TOKEN
        self.top_n = config.VOLUME_TOP_N if top_n is None else top_n
        self.on_pool_updated = on_pool_updated
        self.on_signal_computed = on_signal_computed

        self.rpc = rpc_client or SolanaRPC()
        self.store = PoolStore(history_length=config.HISTORY_LENGTH)
        self.registry = TokenRegistry()
        self.deriver = PriceDeriver(self.rpc, reference_mint=config.NATIVE_MINT)
        self.scanner = PoolScanner(self.rpc, self.deriver)
        self.signals = SignalEngine(max_age_sec=config.SIGNAL_MAX_AGE_SEC)
        self.monitor = VolumeMonitor(
            self.rpc,
            signature_limit=config.VOLUME_SIGNATURE_LIMIT,
            threshold_percent=config.SIGNIFICANT_VOLUME_PERCENT,
            on_significant=self._on_significant_volume,
            request_delay=config.REQUEST_DELAY_SEC,
        )
        self.market = MarketStatsAggregator(new_pool_window_sec=config.NEW_POOL_WINDOW_SEC)
        self.listener: Optional[PoolListener] = None

        # State
        self.running = False
        self._shutting_down = False
        self.last_pool_scan = 0
        self.last_volume_check = 0
        self.last_status_print = 0
        self._threads: Dict[str, threading.Thread] = {}
        self._save_lock = threading.Lock()  # one writer for data/ at a time

        if load_saved:
            self._load_saved_state()

        print("=" * 60)
        print("PumpSwap Pool Watcher Initialized")
        print("=" * 60)
        print(f"Mode: {'SIMPLE (scan + report)' if simple else 'FULL (signals + volume monitor)'}")
        print(f"RPC: {self.rpc.rpc_url}")
        if self.target_token:
            print(f"Target token: {self.target_token}")
        print(f"Min liquidity: {config.MIN_LIQUIDITY_SOL} SOL")
        print(f"Scan interval: {config.POOL_SCAN_INTERVAL_SEC}s")
        if not simple:
            print(f"Volume check: top {self.top_n} pools every {config.VOLUME_CHECK_INTERVAL_SEC}s")
        print("=" * 60)

    def _load_saved_state(self):
        pools = state.load_pools()
        tokens = state.load_tokens()
        if not pools and not tokens:
            return
        self.store.load(pools)
        for mint in tokens:
            self.registry.add(mint)
        for pool in pools:
            self.registry.add_all(pool.base_mint, pool.quote_mint)
        print(f"\n📂 Loaded {len(pools)} pool(s) and {len(self.registry)} token(s) from disk")
        self.market.recompute(self.store, config.MIN_LIQUIDITY_SOL)

    def _save_state(self):
        with self._save_lock:
            if state.save_state(self.store, self.registry):
                state.prune_snapshots(config.MAX_HISTORY_SNAPSHOTS)

    # ── Pool updates ────────────────────────────────────────────────

    def process_pool(self, address: str, pool_account) -> PoolRecord:
        """Price one decoded pool, merge it into the store, refresh its signal."""
        self.registry.add_all(pool_account.base_mint, pool_account.quote_mint)
        snapshot = self.deriver.snapshot(address, pool_account)
        record = self.store.upsert(address, snapshot)

        if self.on_pool_updated:
            self.on_pool_updated(record)

        if not self.simple and record.reserves.native >= config.MIN_LIQUIDITY_SOL:
            sig = self.signals.update(
                record,
                previous=record.previous_state(),
                volume_stats=self.monitor.volume_stats(address),
            )
            if self.on_signal_computed:
                self.on_signal_computed(sig)
        return record

    def scan_pools(self) -> int:
        """Full rescan: fetch, price and merge every pool. Returns pools updated."""
        print(f"\n[{datetime.now().strftime('%H:%M:%S')}] Scanning pools...")
        accounts = self.scanner.fetch_pools(self.target_token or None)
        print(f"  Found {len(accounts)} pool account(s)")

        updated = 0
        failed = 0
        for address, pool_account in accounts:
            try:
                record = self.process_pool(address, pool_account)
                updated += 1
                if record.price == 0:
                    failed += 1
            except Exception as e:
                print(f"  ⚠ Could not update pool {short_address(address)}: {e}")

        stats = self.market.recompute(self.store, config.MIN_LIQUIDITY_SOL)
        print(f"  ✓ Updated {updated} pool(s)" + (f", {failed} without price" if failed else ""))
        print(f"  Liquid pools: total {stats.total_liquidity:,.2f} SOL, {stats.new_pools_24h} new in 24h")

        self._save_state()
        return updated

    def handle_pool_account(self, address: str, raw: bytes) -> Optional[PoolRecord]:
        """Websocket push: price and record a pool we haven't seen yet."""
        if self.store.contains(address):
            return None
        try:
            pool_account = decode_pool_account(raw)
        except PoolDecodeError as e:
            print(f"  ⚠ Skipping pushed account {short_address(address)}: {e}")
            return None
        if self.target_token and self.target_token not in (pool_account.base_mint, pool_account.quote_mint):
            return None

        record = self.process_pool(address, pool_account)
        report.notify(
            f"New pool {report.pool_name(record, self.registry)} "
            f"({short_address(address)}) — {record.reserves.native:,.2f} SOL",
            sound=config.SOUND_ALERTS,
        )
        return record

    # ── Volume monitoring ───────────────────────────────────────────

    def monitored_pools(self) -> List[PoolRecord]:
        """Working set: top-N by liquidity plus explicitly pinned pools."""
        pools = {p.address: p for p in self.store.top_by_liquidity(self.top_n)}
        for address in self.monitor.active_pools():
            pool = self.store.get(address)
            if pool is None:
                print(f"  ⚠ Pinned pool {short_address(address)} not scanned yet")
                continue
            pools[address] = pool
        return list(pools.values())

    def check_volume(self) -> int:
        """Sample every pool in the working set. Returns pools sampled."""
        sampled = 0
        for pool in self.monitored_pools():
            try:
                self.monitor.sample(pool)
                sampled += 1
            except Exception as e:
                print(f"  ⚠ Volume check failed for {short_address(pool.address)}: {e}")
        return sampled

    def _on_significant_volume(self, pool_address: str, buy_volume: float, sell_volume: float):
        report.notify_significant_volume(pool_address, buy_volume, sell_volume,
                                         sound=config.SOUND_ALERTS)

    # ── Snapshot / display ──────────────────────────────────────────

    def get_snapshot(self) -> dict:
        return {
            'pools': self.store.all(),
            'tokens': self.registry.ordered(),
            'stats': self.market.stats,
            'signals': self.signals.active_signals(),
        }

    def print_status(self):
        snap = self.get_snapshot()
        report.print_market_stats(snap['stats'], tracked_tokens=len(snap['tokens']))
        report.print_pool_table(snap['pools'], self.registry, limit=config.REPORT_TOP_N)
        if not self.simple:
            report.print_signals([s for s in snap['signals'] if s.signal != HOLD], self.registry)
            report.print_monitor_status(self.monitor.states())
        print(f"{'─' * 60}\n")

    def show_token(self, mint: str):
        """Print every pool of one token, deepest first (one-shot lookup)."""
        pools = self.scanner.pools_for_token(mint)
        if not pools:
            print(f"✗ No pools found for {mint}")
            return []
        best = pools[0]
        print(f"\n✓ {len(pools)} pool(s) for {self.registry.symbol(mint)}; best:")
        print(f"  address:      {best.address}")
        print(f"  native base:  {best.is_native_base}")
        print(f"  price:        {best.price:.10f} SOL")
        print(f"  reserves:     {best.reserves.native:,.4f} SOL / {best.reserves.token:,.4f} tokens")
        return pools

    # ── Main loop ───────────────────────────────────────────────────

    def run(self):
        """Spawn worker threads and run the display in the main thread."""
        self.running = True

        def _signal_handler(sig, frame):
            print(f"\n\n⚠ Signal received ({sig})...")
            self.shutdown()

        signal.signal(signal.SIGINT, _signal_handler)
        signal.signal(signal.SIGTERM, _signal_handler)

        print("\n🚀 Starting watcher...")
        print("  • Pool scan thread: every %ds" % config.POOL_SCAN_INTERVAL_SEC)
        self._threads['pool_scan'] = threading.Thread(
            target=self._pool_scan_loop, name='pool-scan', daemon=True)

        if not self.simple:
            print("  • Volume thread: every %ds" % config.VOLUME_CHECK_INTERVAL_SEC)
            print("  • Listener thread: new pool accounts via %s" % config.WS_ENDPOINT)
            self._threads['volume'] = threading.Thread(
                target=self._volume_loop, name='volume-monitor', daemon=True)
            self.listener = PoolListener(on_account=self.handle_pool_account)
            self._threads['listener'] = threading.Thread(
                target=self.listener.run, name='pool-listener', daemon=True)

        print("  • Main thread: display every %ds" % config.DISPLAY_INTERVAL_SEC)
        print("Press Ctrl+C to stop\n")

        for t in self._threads.values():
            t.start()

        try:
            while self.running:
                current_time = time.time()
                if current_time - self.last_status_print >= config.DISPLAY_INTERVAL_SEC:
                    self.print_status()
                    self.last_status_print = current_time
                time.sleep(0.5)

        except KeyboardInterrupt:
            print("\n\n⚠ Shutdown signal received...")
            self.shutdown()

    def _pool_scan_loop(self):
        """Worker thread: full rescan on a fixed interval."""
        while self.running:
            try:
                current_time = time.time()
                if current_time - self.last_pool_scan >= config.POOL_SCAN_INTERVAL_SEC:
                    self.scan_pools()
                    self.last_pool_scan = current_time
            except Exception as e:
                print(f"⚠ Pool scan error: {e}")

            time.sleep(1)

    def _volume_loop(self):
        """Worker thread: volume sampling on a fixed interval."""
        while self.running:
            try:
                current_time = time.time()
                if (len(self.store) > 0 and
                        current_time - self.last_volume_check >= config.VOLUME_CHECK_INTERVAL_SEC):
                    self.check_volume()
                    self.last_volume_check = current_time
            except Exception as e:
                print(f"⚠ Volume check error: {e}")

            time.sleep(1)

    def shutdown(self):
        """Stop all threads and save state."""
        if self._shutting_down:
            print("\n⚠ Already shutting down... please wait")
            return
        self._shutting_down = True

        signal.signal(signal.SIGINT, signal.SIG_IGN)
        signal.signal(signal.SIGTERM, signal.SIG_IGN)

        print("\nShutting down watcher...")
        self.running = False
        if self.listener:
            self.listener.stop()

        for name, t in self._threads.items():
            t.join(timeout=5)
            if t.is_alive():
                print(f"  ⚠ Thread '{name}' did not stop in time")

        self._save_state()
        print(f"\n💾 State saved ({len(self.store)} pools, {len(self.registry)} tokens)")
        print("✓ Watcher stopped")
        sys.exit(0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Poll PumpSwap pools, track price/liquidity history and print trading signals.")
    parser.add_argument('--simple', action='store_true',
                        help='scan and report only (no signals, volume monitor or websocket)')
    parser.add_argument('--once', action='store_true',
                        help='run a single scan, print the report and exit')
    parser.add_argument('--token', default=None,
                        help='only track pools trading this mint')
    parser.add_argument('--monitor', action='append', default=[], metavar='POOL',
                        help='pin a pool for volume monitoring (repeatable)')
    parser.add_argument('--top', type=int, default=None, metavar='N',
                        help=f'volume-monitor the N deepest pools (default {config.VOLUME_TOP_N})')
    return parser


def main(argv=None):
    """Entry point."""
    args = build_parser().parse_args(argv)

    watcher = PoolWatcher(simple=args.simple, target_token=args.token, top_n=args.top)
    for address in args.monitor:
        watcher.monitor.activate(address)
        print(f"★ Pinned {address} for volume monitoring")

    if args.once:
        if args.token:
            watcher.show_token(args.token)
        watcher.scan_pools()
        if not args.simple:
            watcher.check_volume()
        watcher.print_status()
        return

    watcher.run()


if __name__ == "__main__":
    main()
