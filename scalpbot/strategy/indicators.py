"""Technical indicators — EMA, RSI, crossover and range helpers. Pure functions, no I/O.

Insufficient history is not an error here: every calculator returns
``None`` (or an empty list) until enough samples exist.
"""

from typing import Optional, Sequence

from scalpbot.strategy.models import Direction, IndicatorAction


def _check_period(period: int) -> None:
    if period <= 0:
        raise ValueError(f"period must be positive, got {period}")


# ── EMA ──────────────────────────────────────────────────────────────────


def calculate_ema(prices: Sequence[float], period: int) -> Optional[float]:
    """Calculate the latest Exponential Moving Average value.

    Uses the standard EMA formula:
        ``EMA_today = price × k + EMA_yesterday × (1 - k)``
    where ``k = 2 / (period + 1)``.

    The first EMA value is seeded with the SMA of the first *period*
    prices; the recurrence runs over every later price.

    Returns ``None`` if fewer than *period* prices are provided.
    """
    _check_period(period)
    if len(prices) < period:
        return None

    k = 2.0 / (period + 1)
    ema = sum(prices[:period]) / period
    for price in prices[period:]:
        ema = price * k + ema * (1 - k)
    return ema


def calculate_ema_series(prices: Sequence[float], period: int) -> list[float]:
    """Calculate a full EMA series seeded with the first raw price.

    Unlike :func:`calculate_ema` there is no SMA seed: ``series[0]`` is
    ``prices[0]`` and the recurrence is applied from index 1.  The two
    variants give different numbers and both are kept.

    Returns a list the same length as *prices*, or ``[]`` if fewer than
    *period* prices are provided.
    """
    _check_period(period)
    if len(prices) < period:
        return []

    k = 2.0 / (period + 1)
    ema = prices[0]
    series = [ema]
    for price in prices[1:]:
        ema = price * k + ema * (1 - k)
        series.append(ema)
    return series


def ema_crossover(
    fast: Sequence[float],
    slow: Sequence[float],
) -> Optional[Direction]:
    """Detect a crossover between the last two points of two EMA series.

    * Bullish: previous fast ≤ previous slow and latest fast > latest slow.
    * Bearish: previous fast ≥ previous slow and latest fast < latest slow.

    Returns ``"buy"``, ``"sell"`` or ``None`` (no cross, or fewer than two
    points in either series).
    """
    if len(fast) < 2 or len(slow) < 2:
        return None

    prev_fast, last_fast = fast[-2], fast[-1]
    prev_slow, last_slow = slow[-2], slow[-1]

    if prev_fast <= prev_slow and last_fast > last_slow:
        return "buy"
    if prev_fast >= prev_slow and last_fast < last_slow:
        return "sell"
    return None


# ── RSI ──────────────────────────────────────────────────────────────────


def price_changes(prices: Sequence[float]) -> tuple[list[float], list[float]]:
    """Split *prices* into per-sample gain and loss sequences.

    The first sample contributes ``0.0`` to both.  Each later sample puts
    its delta into exactly one of the two lists and ``0.0`` into the other.
    """
    gains: list[float] = []
    losses: list[float] = []
    for i, price in enumerate(prices):
        delta = price - prices[i - 1] if i > 0 else 0.0
        gains.append(max(delta, 0.0))
        losses.append(abs(min(delta, 0.0)))
    return gains, losses


def calculate_rsi(
    gains: Sequence[float],
    losses: Sequence[float],
    period: int = 14,
) -> Optional[float]:
    """Calculate the Relative Strength Index from gain/loss samples.

    Algorithm (simple averages, no Wilder smoothing):
        1. avg_gain / avg_loss = mean of the last *period* samples.
        2. avg_loss == 0 → RSI = 100.
        3. RS = avg_gain / avg_loss; RSI = 100 - 100 / (1 + RS).

    Returns ``None`` if fewer than *period* samples are available.
    """
    _check_period(period)
    if len(gains) < period or len(losses) < period:
        return None

    avg_gain = sum(gains[-period:]) / period
    avg_loss = sum(losses[-period:]) / period

    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi_action(
    rsi: float,
    overbought: float = 70.0,
    oversold: float = 30.0,
) -> IndicatorAction:
    """Map an RSI reading to ``"buy"`` (oversold), ``"sell"`` (overbought) or ``"hold"``."""
    if rsi <= oversold:
        return "buy"
    if rsi >= overbought:
        return "sell"
    return "hold"


# ── Range ────────────────────────────────────────────────────────────────


def recent_range(
    highs: Sequence[float],
    lows: Sequence[float],
    lookback: int = 20,
) -> Optional[tuple[float, float]]:
    """Return ``(highest_high, lowest_low)`` over the last *lookback* bars.

    Returns ``None`` when fewer than *lookback* bars are available.
    """
    _check_period(lookback)
    if len(highs) < lookback or len(lows) < lookback:
        return None
    return max(highs[-lookback:]), min(lows[-lookback:])
