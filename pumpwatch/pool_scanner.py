"""
Pool Scanner — program-account scans over the PumpSwap AMM

Two scan modes:
  - all pools:     one getProgramAccounts call filtered by account size
  - target token:  two calls, token as base mint (offset 43) and as quote
                   mint (offset 75), merged and de-duplicated

Accounts that fail to decode are skipped with a warning.
"""
from typing import List, Tuple

from pumpwatch.config import config
from pumpwatch.pool_decoder import (
    PoolAccount,
    PoolDecodeError,
    base_mint_filters,
    decode_pool_account,
    pool_filters,
    quote_mint_filters,
)


class PoolScanner:
    def __init__(self, rpc_client, deriver, program_id: str = None, account_size: int = None):
        self.rpc_client = rpc_client
        self.deriver = deriver
        self.program_id = program_id or config.PROGRAM_ID
        self.account_size = account_size or config.POOL_ACCOUNT_SIZE

    def _decode_all(self, accounts) -> List[Tuple[str, PoolAccount]]:
        decoded = []
        for address, raw in accounts:
            try:
                decoded.append((address, decode_pool_account(raw)))
            except PoolDecodeError as e:
                print(f"  ⚠ Skipping {address}: {e}")
        return decoded

    def fetch_pools(self, target_token: str = None) -> List[Tuple[str, PoolAccount]]:
        """Fetch and decode pool accounts, optionally only those of one mint."""
        if not target_token:
            accounts = self.rpc_client.get_program_accounts(
                self.program_id, pool_filters(self.account_size))
            return self._decode_all(accounts)

        as_base = self.rpc_client.get_program_accounts(
            self.program_id, base_mint_filters(target_token, self.account_size))
        as_quote = self.rpc_client.get_program_accounts(
            self.program_id, quote_mint_filters(target_token, self.account_size))

        seen = set()
        merged = []
        for address, raw in as_base + as_quote:
            if address in seen:
                continue
            seen.add(address)
            merged.append((address, raw))
        return self._decode_all(merged)

    def pools_for_token(self, mint: str) -> List:
        """Every pool trading `mint`, priced, deepest native liquidity first."""
        records = [
            self.deriver.snapshot(address, account)
            for address, account in self.fetch_pools(mint)
        ]
        records.sort(key=lambda p: p.reserves.native, reverse=True)
        return records
