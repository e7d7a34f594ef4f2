"""
Configuration for the PumpSwap pool watcher
"""
import os
from dataclasses import dataclass
from dotenv import load_dotenv


load_dotenv()

# Project root directory (for resolving the data/ folder)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

_DEFAULT_RPC = "https://api.mainnet-beta.solana.com"


def _ws_from_rpc(rpc_url: str) -> str:
    """Derive a websocket endpoint from an HTTP(S) RPC endpoint."""
    if rpc_url.startswith("https://"):
        return "wss://" + rpc_url[len("https://"):]
    if rpc_url.startswith("http://"):
        return "ws://" + rpc_url[len("http://"):]
    return rpc_url


@dataclass
class WatcherConfig:
    # Solana RPC
    RPC_ENDPOINT: str = os.getenv('SOLANA_RPC_URL', _DEFAULT_RPC)
    WS_ENDPOINT: str = os.getenv('SOLANA_WS_URL', '')

    # Program / accounts
    PROGRAM_ID: str = "pAMMBay6oceH9fJKBRHGP5D4bD4sWpmSwMn52FMfXEA"  # PumpSwap AMM
    POOL_ACCOUNT_SIZE: int = 211  # dataSize filter for pool accounts
    NATIVE_MINT: str = "So11111111111111111111111111111111111111112"  # WSOL (reference asset)
    TARGET_TOKEN: str = os.getenv('TARGET_TOKEN', '')  # Restrict scans to pools of one mint

    # Analysis
    MIN_LIQUIDITY_SOL: float = 1.0  # Pools below this are ignored by signals and stats
    HISTORY_LENGTH: int = 100  # Price/liquidity history points kept per pool
    SIGNAL_MAX_AGE_SEC: int = 7200  # Signals older than 2h are stale
    NEW_POOL_WINDOW_SEC: int = 86400  # "New pool" = first seen within 24h

    # Volume monitoring
    VOLUME_SIGNATURE_LIMIT: int = 20  # Signatures fetched per sample
    VOLUME_TOP_N: int = 10  # Monitor the N deepest pools
    SIGNIFICANT_VOLUME_PERCENT: float = 5.0  # Alert if one-sample volume > 5% of liquidity

    # Scheduling
    POOL_SCAN_INTERVAL_SEC: int = 300  # Full rescan every 5 minutes
    VOLUME_CHECK_INTERVAL_SEC: int = 180  # Volume sample every 3 minutes
    DISPLAY_INTERVAL_SEC: int = 60  # Refresh report every minute

    # Rate limiting (fixed sleeps, no backoff)
    RPC_MIN_INTERVAL_SEC: float = 0.2  # 200ms between RPC calls
    REQUEST_DELAY_SEC: float = 0.1  # Pause between per-pool balance fetches

    # Persistence
    DATA_DIR: str = os.path.join(PROJECT_ROOT, 'data')
    MAX_HISTORY_SNAPSHOTS: int = 24  # Timestamped copies kept under data/history/

    # Display
    SOUND_ALERTS: bool = os.getenv('SOUND_ALERTS', 'true').lower() != 'false'
    REPORT_TOP_N: int = 15  # Rows in the pool table

    def __post_init__(self):
        if not self.WS_ENDPOINT:
            self.WS_ENDPOINT = _ws_from_rpc(self.RPC_ENDPOINT)


# Global config instance
config = WatcherConfig()
