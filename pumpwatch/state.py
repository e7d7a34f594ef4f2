"""
Persistent watcher state — pools and tokens saved to disk between runs.

Saves to data/:
  - pools.json            every PoolRecord (current state + histories)
  - tokens.json           known mint addresses, first-seen order
  - history/pools_*.json  timestamped copies of pools.json, pruned to the
                          newest MAX_HISTORY_SNAPSHOTS

Best effort: failures are printed and never touch in-memory state.
"""
import json
import os
from datetime import datetime
from typing import List, Optional

from pumpwatch.config import config
from pumpwatch.analysis.pool_store import HistoryPoint, PoolRecord, Reserves


STATE_DIR = config.DATA_DIR
POOLS_FILE = os.path.join(STATE_DIR, 'pools.json')
TOKENS_FILE = os.path.join(STATE_DIR, 'tokens.json')
HISTORY_DIR = os.path.join(STATE_DIR, 'history')

SNAPSHOT_PREFIX = 'pools_'


def _ensure_dir(path: str):
    """Create a directory if it doesn't exist."""
    os.makedirs(path, exist_ok=True)


def _write_json(path: str, data) -> bool:
    """Write JSON atomically (write to tmp then rename)."""
    tmp_path = path + '.tmp'
    try:
        with open(tmp_path, 'w') as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, path)
        return True
    except (OSError, TypeError, ValueError) as e:
        print(f"⚠ Could not write {path}: {e}")
        # Clean up tmp file
        try:
            os.remove(tmp_path)
        except OSError:
            pass
        return False


def _read_json(path: str):
    if not os.path.exists(path):
        return None
    try:
        with open(path, 'r') as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        print(f"⚠ Could not load {path}: {e}")
        return None


# ── Pool serialization ──────────────────────────────────────────────

def _history_to_list(history) -> list:
    return [{'value': p.value, 'timestamp': p.timestamp} for p in history]


def _history_from_list(items) -> list:
    return [HistoryPoint(value=float(p['value']), timestamp=float(p['timestamp'])) for p in items or []]


def pool_to_dict(pool: PoolRecord) -> dict:
    """Serialize a PoolRecord to the persisted snapshot shape."""
    return {
        'address': pool.address,
        'isNativeBase': pool.is_native_base,
        'baseMint': pool.base_mint,
        'quoteMint': pool.quote_mint,
        'price': pool.price,
        'reserves': {
            'native': pool.reserves.native,
            'token': pool.reserves.token,
        },
        'timestamp': pool.timestamp,
        'priceHistory': _history_to_list(pool.price_history),
        'liquidityHistory': _history_to_list(pool.liquidity_history),
        'poolBaseTokenAccount': pool.pool_base_token_account,
        'poolQuoteTokenAccount': pool.pool_quote_token_account,
        'firstSeen': pool.first_seen,
    }


def pool_from_dict(d: dict) -> PoolRecord:
    """Deserialize a persisted snapshot dict back to a PoolRecord."""
    reserves = d.get('reserves', {})
    pool = PoolRecord(
        address=d['address'],
        base_mint=d['baseMint'],
        quote_mint=d['quoteMint'],
        is_native_base=d.get('isNativeBase', False),
        price=float(d.get('price', 0.0)),
        reserves=Reserves(
            native=float(reserves.get('native', 0.0)),
            token=float(reserves.get('token', 0.0)),
        ),
        timestamp=float(d.get('timestamp', 0.0)),
        pool_base_token_account=d.get('poolBaseTokenAccount', ''),
        pool_quote_token_account=d.get('poolQuoteTokenAccount', ''),
        first_seen=float(d.get('firstSeen', d.get('timestamp', 0.0))),
    )
    pool.price_history.extend(_history_from_list(d.get('priceHistory')))
    pool.liquidity_history.extend(_history_from_list(d.get('liquidityHistory')))
    return pool


# ── Save / load ─────────────────────────────────────────────────────

def save_pools(pools: List[PoolRecord], keep_history: bool = True) -> bool:
    """Save all pools, plus a timestamped copy under history/."""
    _ensure_dir(STATE_DIR)
    data = [pool_to_dict(p) for p in pools]
    ok = _write_json(POOLS_FILE, data)
    if ok and keep_history:
        _ensure_dir(HISTORY_DIR)
        stamp = datetime.now().strftime('%Y%m%d_%H%M%S_%f')
        _write_json(os.path.join(HISTORY_DIR, f"{SNAPSHOT_PREFIX}{stamp}.json"), data)
    return ok


def load_pools() -> List[PoolRecord]:
    """Load saved pools. Unreadable records are skipped."""
    data = _read_json(POOLS_FILE)
    if not data:
        return []
    pools = []
    for d in data:
        try:
            pools.append(pool_from_dict(d))
        except (KeyError, TypeError, ValueError) as e:
            print(f"⚠ Could not restore pool {d.get('address', '?') if isinstance(d, dict) else '?'}: {e}")
    return pools


def save_tokens(tokens: List[str]) -> bool:
    _ensure_dir(STATE_DIR)
    return _write_json(TOKENS_FILE, list(tokens))


def load_tokens() -> List[str]:
    data = _read_json(TOKENS_FILE)
    if not isinstance(data, list):
        return []
    return [t for t in data if isinstance(t, str)]


def save_state(store, registry) -> bool:
    """Save pools and tokens."""
    pools_ok = save_pools(store.all())
    tokens_ok = save_tokens(registry.ordered())
    return pools_ok and tokens_ok


def prune_snapshots(keep: int = None) -> int:
    """Delete all but the newest `keep` history snapshots. Returns count deleted."""
    keep = config.MAX_HISTORY_SNAPSHOTS if keep is None else keep
    if not os.path.isdir(HISTORY_DIR):
        return 0
    snapshots = sorted(
        f for f in os.listdir(HISTORY_DIR)
        if f.startswith(SNAPSHOT_PREFIX) and f.endswith('.json')
    )
    stale = snapshots[:-keep] if keep > 0 else snapshots
    removed = 0
    for name in stale:
        try:
            os.remove(os.path.join(HISTORY_DIR, name))
            removed += 1
        except OSError as e:
            print(f"⚠ Could not remove snapshot {name}: {e}")
    return removed
