"""
Solana JSON-RPC client

Thin wrapper over the handful of RPC methods the watcher needs:

  getProgramAccounts        → pool accounts of the AMM program (filtered)
  getTokenAccountBalance    → uiAmount of a pool vault
  getSignaturesForAddress   → recent transaction signatures for a pool
  getTransaction            → pre/post balances of a transaction

Every call is throttled with a fixed minimum interval (no backoff).  Network
and RPC errors never raise: they print a warning and the typed wrappers
return a neutral value ([] or None) so one failing pool can't abort a batch.
"""
import base64
import threading
import time
import requests
from typing import Dict, List, Optional, Tuple

from pumpwatch.config import config


class SolanaRPC:
    """Solana JSON-RPC over HTTP with per-call throttling."""

    def __init__(self, rpc_url: str = None, min_interval: float = None, timeout: float = 15):
        self.rpc_url = rpc_url or config.RPC_ENDPOINT
        self._rpc_min_interval = config.RPC_MIN_INTERVAL_SEC if min_interval is None else min_interval
        self._last_rpc_time: float = 0  # timestamp of last RPC call
        self.timeout = timeout
        self._session = requests.Session()
        self._lock = threading.Lock()  # one in-flight call per client

    def _rpc_call(self, method: str, params: list):
        """Make a single Solana JSON-RPC call with rate throttling.

        Serialised across threads: the throttle and the shared session are
        used by one caller at a time.
        """
        with self._lock:
            # Throttle: wait at least _rpc_min_interval between RPC calls
            now = time.time()
            elapsed = now - self._last_rpc_time
            if elapsed < self._rpc_min_interval:
                time.sleep(self._rpc_min_interval - elapsed)

            try:
                resp = self._session.post(
                    self.rpc_url,
                    json={
                        "jsonrpc": "2.0",
                        "id": 1,
                        "method": method,
                        "params": params,
                    },
                    timeout=self.timeout,
                )
                self._last_rpc_time = time.time()
                resp.raise_for_status()
                data = resp.json()
                if "error" in data:
                    print(f"  ⚠ RPC error ({method}): {data['error']}")
                    return None
                return data.get("result")
            except (requests.RequestException, ValueError) as e:
                self._last_rpc_time = time.time()
                print(f"  ⚠ RPC call failed ({method}): {e}")
                return None

    # ── Program accounts ─────────────────────────────────────────────

    def get_program_accounts(self, program_id: str, filters: List[Dict]) -> List[Tuple[str, bytes]]:
        """Fetch all accounts owned by program_id matching filters.

        Returns [(address, raw_bytes), ...].  Accounts whose data can't be
        base64-decoded are skipped.
        """
        result = self._rpc_call(
            "getProgramAccounts",
            [program_id, {
                "encoding": "base64",
                "commitment": "confirmed",
                "filters": filters,
            }],
        )
        if not result:
            return []

        accounts = []
        for item in result:
            address = item.get('pubkey', '')
            data = item.get('account', {}).get('data', [])
            try:
                raw = base64.b64decode(data[0]) if isinstance(data, list) else base64.b64decode(data)
            except (IndexError, TypeError, ValueError) as e:
                print(f"  ⚠ Could not decode account data for {address}: {e}")
                continue
            accounts.append((address, raw))
        return accounts

    # ── Token balances ───────────────────────────────────────────────

    def get_token_account_balance(self, address: str) -> Optional[float]:
        """UI amount (decimals applied) held by a token account, or None."""
        if not address:
            return None
        result = self._rpc_call("getTokenAccountBalance", [address, {"commitment": "confirmed"}])
        if not result:
            return None
        ui_amount = result.get('value', {}).get('uiAmount')
        if ui_amount is None:
            return None
        try:
            return float(ui_amount)
        except (TypeError, ValueError):
            return None

    # ── Transactions ─────────────────────────────────────────────────

    def get_signatures_for_address(self, address: str, limit: int = 20) -> Optional[List[str]]:
        """Most recent transaction signatures for address, newest first.

        Returns None if the call failed, so callers can tell a failed fetch
        apart from an address with no activity.
        """
        result = self._rpc_call(
            "getSignaturesForAddress",
            [address, {"limit": limit, "commitment": "confirmed"}],
        )
        if result is None:
            return None
        return [s['signature'] for s in result if s.get('signature')]

    def get_transaction(self, signature: str) -> Optional[Dict]:
        """Balances of a confirmed transaction, or None if unavailable.

        Returns:
            {
                'account_keys': [str],          # static keys + loaded addresses
                'pre_balances': [int],          # lamports, indexed like account_keys
                'post_balances': [int],
                'pre_token_balances': [dict],   # RPC tokenBalance objects
                'post_token_balances': [dict],
            }
        """
        result = self._rpc_call(
            "getTransaction",
            [signature, {
                "encoding": "json",
                "commitment": "confirmed",
                "maxSupportedTransactionVersion": 0,
            }],
        )
        if not result:
            return None

        meta = result.get('meta') or {}
        message = result.get('transaction', {}).get('message', {})
        account_keys = list(message.get('accountKeys', []))
        loaded = meta.get('loadedAddresses') or {}
        account_keys += loaded.get('writable', []) + loaded.get('readonly', [])

        return {
            'account_keys': account_keys,
            'pre_balances': meta.get('preBalances', []),
            'post_balances': meta.get('postBalances', []),
            'pre_token_balances': meta.get('preTokenBalances') or [],
            'post_token_balances': meta.get('postTokenBalances') or [],
        }
