"""
Pool state tracking, signals, volume monitoring and market statistics
"""
from pumpwatch.analysis.market_stats import MarketStats, MarketStatsAggregator
from pumpwatch.analysis.pool_store import PoolRecord, PoolStore
from pumpwatch.analysis.price_deriver import PriceDeriver
from pumpwatch.analysis.signal_engine import SignalEngine, TradingSignal
from pumpwatch.analysis.token_registry import TokenRegistry
from pumpwatch.analysis.volume_monitor import VolumeMonitor

__all__ = [
    "MarketStats",
    "MarketStatsAggregator",
    "PoolRecord",
    "PoolStore",
    "PriceDeriver",
    "SignalEngine",
    "TradingSignal",
    "TokenRegistry",
    "VolumeMonitor",
]
