"""Tests for pumpwatch/config.py — WatcherConfig dataclass and defaults."""
from pumpwatch.config import WatcherConfig, _ws_from_rpc


class TestWatcherConfigStructure:

    def test_rpc_endpoint_is_url(self):
        cfg = WatcherConfig()
        assert isinstance(cfg.RPC_ENDPOINT, str)
        assert cfg.RPC_ENDPOINT.startswith("http")

    def test_rpc_endpoint_explicit_override(self):
        cfg = WatcherConfig(RPC_ENDPOINT="https://custom-rpc.io")
        assert cfg.RPC_ENDPOINT == "https://custom-rpc.io"

    def test_ws_endpoint_derived_from_rpc(self):
        cfg = WatcherConfig(RPC_ENDPOINT="https://custom-rpc.io/key", WS_ENDPOINT="")
        assert cfg.WS_ENDPOINT == "wss://custom-rpc.io/key"

    def test_ws_endpoint_explicit(self):
        cfg = WatcherConfig(WS_ENDPOINT="wss://other")
        assert cfg.WS_ENDPOINT == "wss://other"

    def test_analysis_defaults(self):
        cfg = WatcherConfig()
        assert cfg.HISTORY_LENGTH == 100
        assert cfg.SIGNAL_MAX_AGE_SEC == 7200
        assert cfg.NEW_POOL_WINDOW_SEC == 86400
        assert cfg.POOL_ACCOUNT_SIZE == 211

    def test_schedule_defaults(self):
        cfg = WatcherConfig()
        assert cfg.POOL_SCAN_INTERVAL_SEC == 300
        assert cfg.VOLUME_CHECK_INTERVAL_SEC == 180
        assert isinstance(cfg.RPC_MIN_INTERVAL_SEC, float)

    def test_native_mint_is_wsol(self):
        assert WatcherConfig().NATIVE_MINT == "So11111111111111111111111111111111111111112"


class TestWsFromRpc:

    def test_http(self):
        assert _ws_from_rpc("http://localhost:8899") == "ws://localhost:8899"

    def test_unknown_scheme_unchanged(self):
        assert _ws_from_rpc("wss://already") == "wss://already"
