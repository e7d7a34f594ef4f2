"""
PumpSwap pool account decoding

On-chain layout of the Anchor `Pool` account (211 bytes):

  offset  size  field
       0     8  Anchor discriminator = sha256("account:Pool")[:8]
       8     1  pool_bump (u8)
       9     2  index (u16 LE)
      11    32  creator
      43    32  base_mint
      75    32  quote_mint
     107    32  lp_mint
     139    32  pool_base_token_account
     171    32  pool_quote_token_account
     203     8  lp_supply (u64 LE)

Newer pools append extra fields after lp_supply; they are ignored.
"""
import hashlib
import struct
from dataclasses import dataclass
from typing import Dict, List

from solders.pubkey import Pubkey


POOL_DISCRIMINATOR = hashlib.sha256(b"account:Pool").digest()[:8]
POOL_MIN_SIZE = 211

BASE_MINT_OFFSET = 43
QUOTE_MINT_OFFSET = 75


class PoolDecodeError(ValueError):
    """Raised when raw account bytes are not a PumpSwap pool."""


@dataclass
class PoolAccount:
    """Decoded pool account fields."""
    pool_bump: int
    index: int
    creator: str
    base_mint: str
    quote_mint: str
    lp_mint: str
    pool_base_token_account: str
    pool_quote_token_account: str
    lp_supply: int


def _pubkey_at(data: bytes, offset: int) -> str:
    return str(Pubkey.from_bytes(data[offset:offset + 32]))


def decode_pool_account(data: bytes) -> PoolAccount:
    """Decode raw account bytes into a PoolAccount.

    Raises PoolDecodeError on short data or a foreign discriminator.
    """
    if data is None or len(data) < POOL_MIN_SIZE:
        size = 0 if data is None else len(data)
        raise PoolDecodeError(f"pool account too short ({size} < {POOL_MIN_SIZE} bytes)")
    if data[:8] != POOL_DISCRIMINATOR:
        raise PoolDecodeError(f"unexpected discriminator {data[:8].hex()}")

    pool_bump, index = struct.unpack_from("<BH", data, 8)
    (lp_supply,) = struct.unpack_from("<Q", data, 203)

    return PoolAccount(
        pool_bump=pool_bump,
        index=index,
        creator=_pubkey_at(data, 11),
        base_mint=_pubkey_at(data, BASE_MINT_OFFSET),
        quote_mint=_pubkey_at(data, QUOTE_MINT_OFFSET),
        lp_mint=_pubkey_at(data, 107),
        pool_base_token_account=_pubkey_at(data, 139),
        pool_quote_token_account=_pubkey_at(data, 171),
        lp_supply=lp_supply,
    )


# ── RPC filters ──────────────────────────────────────────────────────

def pool_filters(account_size: int = POOL_MIN_SIZE) -> List[Dict]:
    """Filters matching every pool account."""
    return [{"dataSize": account_size}]


def base_mint_filters(mint: str, account_size: int = POOL_MIN_SIZE) -> List[Dict]:
    """Filters matching pools whose base mint is `mint`."""
    return pool_filters(account_size) + [
        {"memcmp": {"offset": BASE_MINT_OFFSET, "bytes": mint}},
    ]


def quote_mint_filters(mint: str, account_size: int = POOL_MIN_SIZE) -> List[Dict]:
    """Filters matching pools whose quote mint is `mint`."""
    return pool_filters(account_size) + [
        {"memcmp": {"offset": QUOTE_MINT_OFFSET, "bytes": mint}},
    ]
