"""
Token Registry — append-only set of known mint addresses

Populated from every scanned pool's base/quote mint and from the persisted
token list.  Also resolves mints to display symbols.
"""
import threading
from typing import Dict, Iterable, List, Set


# Well-known mints that get a readable symbol instead of a shortened address
KNOWN_SYMBOLS = {
    "So11111111111111111111111111111111111111112": "SOL",
    "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v": "USDC",
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB": "USDT",
}


def short_address(address: str) -> str:
    """abcd…wxyz form of a base58 address."""
    if len(address) <= 10:
        return address
    return f"{address[:4]}…{address[-4:]}"


class TokenRegistry:
    """Insertion-ordered, thread-safe set of mint addresses."""

    def __init__(self, mints: Iterable[str] = ()):
        # dict keeps insertion order for the persisted token list
        self._mints: Dict[str, None] = {}
        self._lock = threading.Lock()
        for mint in mints:
            self.add(mint)

    def add(self, mint: str) -> bool:
        """Add a mint. Returns True if it was new."""
        if not mint:
            return False
        with self._lock:
            if mint in self._mints:
                return False
            self._mints[mint] = None
            return True

    def add_all(self, base_mint: str, quote_mint: str):
        self.add(base_mint)
        self.add(quote_mint)

    def all(self) -> Set[str]:
        with self._lock:
            return set(self._mints)

    def ordered(self) -> List[str]:
        """Mints in first-seen order."""
        with self._lock:
            return list(self._mints)

    def symbol(self, mint: str) -> str:
        return KNOWN_SYMBOLS.get(mint) or short_address(mint)

    def __contains__(self, mint: str) -> bool:
        with self._lock:
            return mint in self._mints

    def __len__(self) -> int:
        with self._lock:
            return len(self._mints)
