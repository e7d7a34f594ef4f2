"""
Pool Store — authoritative in-memory map of pool address -> PoolRecord

Each PoolRecord holds the current price/reserves plus two bounded histories
(price and native liquidity).  History records the *previous* state on every
update, so after N updates of one pool the histories hold N-1 points (capped
at the configured length, oldest evicted first).

Typical usage:
  store = PoolStore(history_length=100)
  # each scan cycle, per pool:
  record = store.upsert(address, snapshot)
  previous = record.previous_state()
"""
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional

DEFAULT_HISTORY_LENGTH = 100


@dataclass
class HistoryPoint:
    """Single point-in-time value (price or native liquidity)."""
    value: float
    timestamp: float


@dataclass
class Reserves:
    native: float = 0.0    # reference-asset (SOL) balance held by the pool
    token: float = 0.0     # other-side token balance


def _history() -> deque:
    return deque(maxlen=DEFAULT_HISTORY_LENGTH)


@dataclass
class PoolRecord:
    """One PumpSwap liquidity pool.

    price = native reserve / token reserve.  A price of 0 means the balance
    fetch failed; it is "unknown", not "worthless".
    """
    address: str
    base_mint: str
    quote_mint: str
    is_native_base: bool = False
    price: float = 0.0
    reserves: Reserves = field(default_factory=Reserves)
    timestamp: float = 0.0

    # Vault (token account) addresses holding the pool's base/quote balances
    pool_base_token_account: str = ""
    pool_quote_token_account: str = ""
    first_seen: float = 0.0

    price_history: deque = field(default_factory=_history)
    liquidity_history: deque = field(default_factory=_history)

    @property
    def token_mint(self) -> str:
        """Mint of the non-reference side (the token signals are keyed by)."""
        return self.quote_mint if self.is_native_base else self.base_mint

    @property
    def native_vault(self) -> str:
        """Token account holding the pool's reference-asset balance."""
        return self.pool_base_token_account if self.is_native_base else self.pool_quote_token_account

    @property
    def liquidity(self) -> float:
        return self.reserves.native

    def previous_state(self) -> Optional[Dict]:
        """Price and native liquidity as of the previous update, or None."""
        if not self.price_history or not self.liquidity_history:
            return None
        return {
            'price': self.price_history[-1].value,
            'liquidity': self.liquidity_history[-1].value,
            'timestamp': self.price_history[-1].timestamp,
        }


class PoolStore:
    """Thread-safe map of pool address -> PoolRecord.

    Pools are never removed once seen.
    """

    def __init__(self, history_length: int = DEFAULT_HISTORY_LENGTH):
        self.history_length = history_length
        self._pools: Dict[str, PoolRecord] = {}
        self._lock = threading.Lock()

    def upsert(self, address: str, snapshot: PoolRecord) -> PoolRecord:
        """Insert a fresh snapshot or merge it into the stored record.

        The merge diffs against whatever is stored at call time: the stored
        price/liquidity is pushed onto the histories, then the snapshot's
        price/reserves/timestamp become current.  Identity fields (address,
        mints) of an existing record are never changed.
        """
        with self._lock:
            prior = self._pools.get(address)
            if prior is None:
                snapshot.address = address
                snapshot.price_history = deque(maxlen=self.history_length)
                snapshot.liquidity_history = deque(maxlen=self.history_length)
                if not snapshot.first_seen:
                    snapshot.first_seen = snapshot.timestamp
                self._pools[address] = snapshot
                return snapshot

            prior.price_history.append(HistoryPoint(prior.price, prior.timestamp))
            prior.liquidity_history.append(HistoryPoint(prior.reserves.native, prior.timestamp))

            prior.price = snapshot.price
            prior.reserves = Reserves(snapshot.reserves.native, snapshot.reserves.token)
            prior.timestamp = snapshot.timestamp
            # Vaults may be missing on records restored from older snapshots
            if not prior.pool_base_token_account:
                prior.pool_base_token_account = snapshot.pool_base_token_account
            if not prior.pool_quote_token_account:
                prior.pool_quote_token_account = snapshot.pool_quote_token_account
            return prior

    def load(self, records: List[PoolRecord]):
        """Restore records (with their histories) from persisted state."""
        with self._lock:
            for record in records:
                record.price_history = deque(record.price_history, maxlen=self.history_length)
                record.liquidity_history = deque(record.liquidity_history, maxlen=self.history_length)
                self._pools[record.address] = record

    def get(self, address: str) -> Optional[PoolRecord]:
        with self._lock:
            return self._pools.get(address)

    def contains(self, address: str) -> bool:
        with self._lock:
            return address in self._pools

    def all(self) -> List[PoolRecord]:
        with self._lock:
            return list(self._pools.values())

    def top_by_liquidity(self, n: int) -> List[PoolRecord]:
        """The n pools with the highest native reserve, deepest first."""
        pools = self.all()
        pools.sort(key=lambda p: p.reserves.native, reverse=True)
        return pools[:n]

    def __len__(self) -> int:
        with self._lock:
            return len(self._pools)

    def __contains__(self, address: str) -> bool:
        return self.contains(address)
