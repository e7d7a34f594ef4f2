"""
Price/Liquidity Deriver

Turns a pool's two vault balances into price and reserves.

  is_native_base  — base mint is the reference asset (WSOL)
  native reserve  — balance of the reference side
  price           — native reserve / token reserve

If neither side is the reference asset the base side is used as the
"native" side.  Any failed or zero balance degrades to the all-zero
sentinel (price 0, reserves 0) instead of raising; callers must treat
price 0 as "unknown".  Merging into history is PoolStore's job.
"""
import time
from typing import Optional, Tuple

from pumpwatch.analysis.pool_store import PoolRecord, Reserves
from pumpwatch.config import config


def derive_price(base_mint: str, quote_mint: str,
                 base_balance: Optional[float], quote_balance: Optional[float],
                 reference_mint: str) -> Tuple[bool, float, float, float]:
    """Compute (is_native_base, price, native_reserve, token_reserve)."""
    is_native_base = base_mint == reference_mint

    if is_native_base:
        native, token = base_balance, quote_balance
    elif quote_mint == reference_mint:
        native, token = quote_balance, base_balance
    else:
        # Neither side is the reference asset: fall back to base as "native"
        native, token = base_balance, quote_balance

    if native is None or token is None or token <= 0 or native < 0:
        return is_native_base, 0.0, 0.0, 0.0

    return is_native_base, native / token, native, token


class PriceDeriver:
    """Builds fresh PoolRecord snapshots from on-chain vault balances."""

    def __init__(self, rpc_client, reference_mint: str = None, request_delay: float = None):
        self.rpc_client = rpc_client
        self.reference_mint = reference_mint or config.NATIVE_MINT
        self.request_delay = config.REQUEST_DELAY_SEC if request_delay is None else request_delay

    def _fetch_balance(self, address: str) -> Optional[float]:
        try:
            return self.rpc_client.get_token_account_balance(address)
        except Exception as e:
            print(f"  ⚠ Balance fetch failed for {address}: {e}")
            return None

    def snapshot(self, address: str, pool_account) -> PoolRecord:
        """Fetch both vault balances of a decoded pool and derive a snapshot."""
        base_balance = self._fetch_balance(pool_account.pool_base_token_account)
        if self.request_delay:
            time.sleep(self.request_delay)
        quote_balance = None
        if base_balance is not None:
            quote_balance = self._fetch_balance(pool_account.pool_quote_token_account)

        is_native_base, price, native, token = derive_price(
            pool_account.base_mint,
            pool_account.quote_mint,
            base_balance,
            quote_balance,
            self.reference_mint,
        )

        return PoolRecord(
            address=address,
            base_mint=pool_account.base_mint,
            quote_mint=pool_account.quote_mint,
            is_native_base=is_native_base,
            price=price,
            reserves=Reserves(native=native, token=token),
            timestamp=time.time(),
            pool_base_token_account=pool_account.pool_base_token_account,
            pool_quote_token_account=pool_account.pool_quote_token_account,
        )
