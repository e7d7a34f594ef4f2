"""
Volume/Activity Monitor — approximate buy/sell volume per pool

Each sample:
  1. Fetch the most recent K signatures for the pool address.
  2. new_count = len(signatures) - last_signature_count; <= 0 means nothing
     new and no transactions are fetched.  A failed fetch counts nothing
     and keeps last_signature_count.
  3. For each of the new_count newest signatures, fetch the transaction and
     diff the pool's native holdings (its SOL vault) pre vs post:
     increase → buy volume, decrease → sell volume.
  4. Accumulate into the cumulative buy/sell totals and flag the sample as
     significant if either side moved more than threshold% of liquidity.

Balance deltas are a coarse heuristic, not decoded swap direction.  Missing
transactions are skipped.
"""
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

LAMPORTS_PER_SOL = 1_000_000_000


@dataclass
class PoolMonitoringState:
    last_signature_count: int = 0
    last_liquidity: float = 0.0
    buy_volume: float = 0.0     # cumulative, SOL
    sell_volume: float = 0.0    # cumulative, SOL
    last_checked: float = 0.0
    is_active: bool = True


@dataclass
class MonitoringUpdate:
    """Result of one sample of a pool."""
    pool_address: str
    new_transactions: int
    buy_volume: float           # this sample only
    sell_volume: float          # this sample only
    significant: bool
    state: PoolMonitoringState


def _token_balance(balances: List[Dict], index: int) -> Optional[float]:
    for b in balances:
        if b.get('accountIndex') == index:
            amount = b.get('uiTokenAmount', {}).get('uiAmount')
            return float(amount) if amount is not None else 0.0
    return None


def native_delta(tx: Dict, account: str) -> float:
    """Change in `account`'s native holdings across a transaction (SOL).

    Uses SPL token balances when the account is a token account (pool vault),
    lamport balances otherwise.  Returns 0 if the account isn't in the
    transaction.
    """
    keys = tx.get('account_keys', [])
    if account not in keys:
        return 0.0
    index = keys.index(account)

    pre_tok = _token_balance(tx.get('pre_token_balances', []), index)
    post_tok = _token_balance(tx.get('post_token_balances', []), index)
    if pre_tok is not None or post_tok is not None:
        return (post_tok or 0.0) - (pre_tok or 0.0)

    pre = tx.get('pre_balances', [])
    post = tx.get('post_balances', [])
    if index < len(pre) and index < len(post):
        return (post[index] - pre[index]) / LAMPORTS_PER_SOL
    return 0.0


class VolumeMonitor:
    """Samples transaction activity for a bounded set of pools.

    Parameters:
        rpc_client: object with get_signatures_for_address / get_transaction
        signature_limit: K, signatures fetched per sample
        threshold_percent: one-sample volume above this % of liquidity is
                           significant
        on_significant: callback(pool_address, buy_volume, sell_volume)
    """

    def __init__(self, rpc_client, signature_limit: int = 20,
                 threshold_percent: float = 5.0,
                 on_significant: Callable[[str, float, float], None] = None,
                 request_delay: float = 0.0):
        self.rpc_client = rpc_client
        self.signature_limit = signature_limit
        self.threshold_percent = threshold_percent
        self.on_significant = on_significant
        self.request_delay = request_delay
        self._states: Dict[str, PoolMonitoringState] = {}
        self._lock = threading.Lock()

    # ── Activation ───────────────────────────────────────────────────

    def activate(self, pool_address: str) -> PoolMonitoringState:
        """Start monitoring a pool.  Re-activation resets its volumes."""
        with self._lock:
            state = self._states.get(pool_address)
            if state is None or not state.is_active:
                state = PoolMonitoringState(is_active=True)
                self._states[pool_address] = state
            return state

    def deactivate(self, pool_address: str) -> bool:
        with self._lock:
            state = self._states.get(pool_address)
            if state is None:
                return False
            state.is_active = False
            return True

    def is_active(self, pool_address: str) -> bool:
        with self._lock:
            state = self._states.get(pool_address)
            return bool(state and state.is_active)

    def active_pools(self) -> List[str]:
        with self._lock:
            return [addr for addr, s in self._states.items() if s.is_active]

    def get_state(self, pool_address: str) -> Optional[PoolMonitoringState]:
        with self._lock:
            return self._states.get(pool_address)

    def states(self) -> Dict[str, PoolMonitoringState]:
        with self._lock:
            return dict(self._states)

    # ── Sampling ─────────────────────────────────────────────────────

    def sample(self, pool) -> MonitoringUpdate:
        """Sample recent activity for a pool (PoolRecord).

        Pools sampled without prior activation (top-N by liquidity) get a
        fresh, inactive state.  A failed signature fetch (None) only
        refreshes last_checked/last_liquidity; the signature count is kept
        so the next successful sample doesn't count the window twice.
        """
        address = pool.address
        with self._lock:
            state = self._states.get(address)
            if state is None:
                state = PoolMonitoringState(is_active=False)
                self._states[address] = state
            last_count = state.last_signature_count

        signatures = self.rpc_client.get_signatures_for_address(address, self.signature_limit)
        fetched = signatures is not None
        new_count = len(signatures) - last_count if fetched else 0

        buy = 0.0
        sell = 0.0
        processed = 0
        if new_count > 0:
            reference = pool.native_vault or address
            for signature in signatures[:new_count]:
                if self.request_delay:
                    time.sleep(self.request_delay)
                try:
                    tx = self.rpc_client.get_transaction(signature)
                except Exception as e:
                    print(f"  ⚠ Could not fetch transaction {signature[:8]}...: {e}")
                    continue
                if not tx:
                    continue
                processed += 1
                delta = native_delta(tx, reference)
                if delta > 0:
                    buy += delta
                elif delta < 0:
                    sell += -delta

        liquidity = pool.reserves.native
        limit = liquidity * self.threshold_percent / 100
        significant = buy > limit or sell > limit

        with self._lock:
            # activate/deactivate may have swapped the state while we fetched
            state = self._states.get(address)
            if state is None:
                state = PoolMonitoringState(is_active=False)
                self._states[address] = state
            state.buy_volume += buy
            state.sell_volume += sell
            if fetched:
                state.last_signature_count = len(signatures)
            state.last_liquidity = liquidity
            state.last_checked = time.time()

        if significant and self.on_significant:
            self.on_significant(address, buy, sell)

        return MonitoringUpdate(
            pool_address=address,
            new_transactions=processed,
            buy_volume=buy,
            sell_volume=sell,
            significant=significant,
            state=state,
        )

    def volume_stats(self, pool_address: str) -> Optional[Dict]:
        """{'volume24h': buy + sell} for the signal engine, or None."""
        state = self.get_state(pool_address)
        if state is None:
            return None
        return {'volume24h': state.buy_volume + state.sell_volume}
