"""
Shared fixtures for the pool watcher test suite.
"""
import os
import struct
import sys
import pytest
from unittest.mock import MagicMock, patch

# Ensure project root is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import base58 as _b58
from solders.pubkey import Pubkey as _Pubkey


WSOL = "So11111111111111111111111111111111111111112"


# ── Environment stubs ────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def _patch_env(monkeypatch):
    """Dummy RPC URL, no sleeps, no terminal bell."""
    monkeypatch.setenv("SOLANA_RPC_URL", "https://test-rpc.example.com")
    from pumpwatch.config import config
    monkeypatch.setattr(config, "REQUEST_DELAY_SEC", 0)
    monkeypatch.setattr(config, "RPC_MIN_INTERVAL_SEC", 0)
    monkeypatch.setattr(config, "SOUND_ALERTS", False)


@pytest.fixture
def tmp_data_dir(tmp_path):
    """Redirect state module paths to a temp directory."""
    history_dir = str(tmp_path / "history")
    with patch("pumpwatch.state.STATE_DIR", str(tmp_path)), \
         patch("pumpwatch.state.POOLS_FILE", str(tmp_path / "pools.json")), \
         patch("pumpwatch.state.TOKENS_FILE", str(tmp_path / "tokens.json")), \
         patch("pumpwatch.state.HISTORY_DIR", history_dir):
        yield tmp_path


# ── Sample data ──────────────────────────────────────────────────────

def make_pool(address="pool1", price=0.001, native=50.0, token=50_000.0,
              timestamp=1_700_000_000.0, is_native_base=False,
              base_mint="MEMEMint11111111111111111111111111111111111", quote_mint=WSOL,
              **overrides):
    """A PoolRecord with sensible defaults (token/WSOL pool)."""
    from pumpwatch.analysis.pool_store import PoolRecord, Reserves
    kwargs = dict(
        address=address,
        base_mint=base_mint,
        quote_mint=quote_mint,
        is_native_base=is_native_base,
        price=price,
        reserves=Reserves(native=native, token=token),
        timestamp=timestamp,
        pool_base_token_account="baseVault1",
        pool_quote_token_account="quoteVault1",
    )
    kwargs.update(overrides)
    return PoolRecord(**kwargs)


@pytest.fixture
def pool_factory():
    return make_pool


def pool_account_bytes(base_mint: str, quote_mint: str, base_vault: str, quote_vault: str,
                       creator: str = None, lp_mint: str = None,
                       pool_bump: int = 254, index: int = 0, lp_supply: int = 1_000_000) -> bytes:
    """Raw 211-byte PumpSwap pool account."""
    from pumpwatch.pool_decoder import POOL_DISCRIMINATOR
    creator = creator or str(_Pubkey.new_unique())
    lp_mint = lp_mint or str(_Pubkey.new_unique())
    data = POOL_DISCRIMINATOR + struct.pack("<BH", pool_bump, index)
    for key in (creator, base_mint, quote_mint, lp_mint, base_vault, quote_vault):
        data += _b58.b58decode(key)
    data += struct.pack("<Q", lp_supply)
    return data


@pytest.fixture
def raw_pool_account():
    return pool_account_bytes


@pytest.fixture
def mock_rpc():
    """A mock SolanaRPC."""
    client = MagicMock()
    client.rpc_url = "https://test-rpc.example.com"
    client.get_program_accounts.return_value = []
    client.get_token_account_balance.return_value = None
    client.get_signatures_for_address.return_value = []
    client.get_transaction.return_value = None
    return client
