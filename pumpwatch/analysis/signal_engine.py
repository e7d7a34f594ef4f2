"""
Signal Engine — heuristic buy/sell classification per token

Compares a pool's current snapshot with its previous one and adds signed
points from four factors, all evaluated in order (no early exit):

  Price momentum      >20%: +20   >10%: +10   <-10%: -10   <-20%: -20
  Liquidity change    >50%: +25   >20%: +15   <-15%: -15   <-30%: -25
  Liquidity size      >100 SOL: +15   >50 SOL: +10   <5 SOL: -10
  Volume/liquidity    >0.5: +15   >0.2: +8   (only when 24h volume > 0)

Classification from total points p:
  p >= 35 strong_buy | 15 <= p < 35 buy | -35 < p <= -15 sell
  p <= -35 strong_sell | otherwise hold
confidence = min(100, |p|)

Signals are keyed by the pool's non-reference token and overwritten
wholesale on every recompute.
"""
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

STRONG_BUY = "strong_buy"
BUY = "buy"
HOLD = "hold"
SELL = "sell"
STRONG_SELL = "strong_sell"

INSUFFICIENT_DATA = "Insufficient historical data"


@dataclass
class TradingSignal:
    token: str
    signal: str
    confidence: float
    reasons: List[str] = field(default_factory=list)
    timestamp: float = 0.0
    pool_address: str = ""


def classify(points: float) -> str:
    if points >= 35:
        return STRONG_BUY
    if points >= 15:
        return BUY
    if points <= -35:
        return STRONG_SELL
    if points <= -15:
        return SELL
    return HOLD


def _price_points(pct: float):
    if pct > 20:
        return 20, f"Strong price increase: {pct:.2f}%"
    if pct > 10:
        return 10, f"Price increase: {pct:.2f}%"
    if pct < -20:
        return -20, f"Strong price decrease: {pct:.2f}%"
    if pct < -10:
        return -10, f"Price decrease: {pct:.2f}%"
    return 0, None


def _liquidity_change_points(pct: float):
    if pct > 50:
        return 25, f"Major liquidity inflow: {pct:.2f}%"
    if pct > 20:
        return 15, f"Liquidity inflow: {pct:.2f}%"
    if pct < -30:
        return -25, f"Major liquidity outflow: {pct:.2f}%"
    if pct < -15:
        return -15, f"Liquidity outflow: {pct:.2f}%"
    return 0, None


def _liquidity_size_points(native: float):
    if native > 100:
        return 15, f"Deep liquidity: {native:.2f} SOL"
    if native > 50:
        return 10, f"Good liquidity: {native:.2f} SOL"
    if native < 5:
        return -10, f"Thin liquidity: {native:.2f} SOL"
    return 0, None


def _volume_points(ratio: float):
    if ratio > 0.5:
        return 15, f"High volume/liquidity ratio: {ratio:.2f}"
    if ratio > 0.2:
        return 8, f"Moderate volume/liquidity ratio: {ratio:.2f}"
    return 0, None


def compute_signal(current, previous: Optional[Dict] = None,
                   volume_stats: Optional[Dict] = None,
                   now: float = None) -> TradingSignal:
    """Score a pool snapshot against its previous state.

    Args:
        current: PoolRecord (uses price, reserves.native, token_mint)
        previous: {'price': float, 'liquidity': float} or None
        volume_stats: {'volume24h': float} or None
    """
    now = time.time() if now is None else now
    token = current.token_mint

    if not previous or not previous.get('price') or not current.price:
        return TradingSignal(
            token=token,
            signal=HOLD,
            confidence=0.0,
            reasons=[INSUFFICIENT_DATA],
            timestamp=now,
            pool_address=current.address,
        )

    points = 0
    reasons = []
    native = current.reserves.native

    price_pct = (current.price - previous['price']) / previous['price'] * 100
    contributions = [_price_points(price_pct)]

    prev_liquidity = previous.get('liquidity') or 0
    if prev_liquidity > 0:
        liq_pct = (native - prev_liquidity) / prev_liquidity * 100
        contributions.append(_liquidity_change_points(liq_pct))

    contributions.append(_liquidity_size_points(native))

    volume_24h = (volume_stats or {}).get('volume24h', 0) or 0
    if volume_24h > 0 and native > 0:
        contributions.append(_volume_points(volume_24h / native))

    for pts, reason in contributions:
        if pts:
            points += pts
            reasons.append(reason)

    return TradingSignal(
        token=token,
        signal=classify(points),
        confidence=float(min(100, abs(points))),
        reasons=reasons,
        timestamp=now,
        pool_address=current.address,
    )


class SignalEngine:
    """Computes and keeps the latest TradingSignal per token."""

    def __init__(self, max_age_sec: float = 7200):
        self.max_age_sec = max_age_sec
        self._signals: Dict[str, TradingSignal] = {}
        self._lock = threading.Lock()

    def update(self, current, previous: Optional[Dict] = None,
               volume_stats: Optional[Dict] = None) -> TradingSignal:
        """Recompute the signal for current's token and store it."""
        signal = compute_signal(current, previous, volume_stats)
        with self._lock:
            self._signals[signal.token] = signal
        return signal

    def get(self, token: str) -> Optional[TradingSignal]:
        with self._lock:
            return self._signals.get(token)

    def all(self) -> List[TradingSignal]:
        with self._lock:
            return list(self._signals.values())

    def active_signals(self, max_age_sec: float = None, now: float = None) -> List[TradingSignal]:
        """Signals computed within max_age_sec, strongest first."""
        max_age = self.max_age_sec if max_age_sec is None else max_age_sec
        cutoff = (time.time() if now is None else now) - max_age
        fresh = [s for s in self.all() if s.timestamp >= cutoff]
        fresh.sort(key=lambda s: s.confidence, reverse=True)
        return fresh
