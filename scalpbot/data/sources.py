"""Price and candle sources.

The core only reads from these collaborators:

* ``CandleSource.fetch_history`` — finite, ordered candles for a backtest.
* ``PriceSource.subscribe`` — an unbounded async stream of ticks for live
  monitoring.

The synthetic implementations are seeded so backtests and paper sessions
are reproducible.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Optional, Protocol, Sequence, runtime_checkable

import numpy as np

from scalpbot.strategy.models import Candle, PriceSample, normalize_pair


@runtime_checkable
class CandleSource(Protocol):
    """Historical data provider."""

    def fetch_history(
        self, symbol: str, start: datetime, end: datetime,
    ) -> list[Candle]:
        """Return candles with ``start <= timestamp <= end``, oldest first."""
        ...


@runtime_checkable
class PriceSource(Protocol):
    """Live tick provider."""

    def subscribe(self, symbol: str) -> AsyncIterator[PriceSample]:
        """Return an async iterator of ticks for *symbol*."""
        ...


class StaticCandleSource:
    """Serves a fixed, pre-built candle list (fixtures, CSV imports)."""

    def __init__(self, candles: Sequence[Candle]) -> None:
        self._candles = sorted(candles, key=lambda c: c.timestamp)

    def fetch_history(
        self, symbol: str, start: datetime, end: datetime,
    ) -> list[Candle]:
        return [c for c in self._candles if start <= c.timestamp <= end]


class SyntheticCandleSource:
    """Seeded random-walk candle generator.

    Args:
        seed: Seed for ``numpy.random.default_rng``.
        start_price: Close of the bar preceding the first generated bar.
        interval: Bar duration (hourly by default).
        max_move: Largest open-to-close move per bar.
        max_wick: Largest wick beyond the candle body.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        start_price: float = 1.10,
        interval: timedelta = timedelta(hours=1),
        max_move: float = 0.0015,
        max_wick: float = 0.0005,
    ) -> None:
        if interval.total_seconds() <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._seed = seed
        self._start_price = start_price
        self._interval = interval
        self._max_move = max_move
        self._max_wick = max_wick

    def fetch_history(
        self, symbol: str, start: datetime, end: datetime,
    ) -> list[Candle]:
        rng = np.random.default_rng(self._seed)
        candles: list[Candle] = []
        price = self._start_price
        ts = start
        while ts <= end:
            open_ = price + rng.uniform(-0.0001, 0.0001)
            close = open_ + rng.uniform(-self._max_move, self._max_move)
            high = max(open_, close) + abs(rng.uniform(0.0, self._max_wick))
            low = min(open_, close) - abs(rng.uniform(0.0, self._max_wick))
            candles.append(
                Candle(
                    timestamp=ts,
                    open=round(float(open_), 5),
                    high=round(float(high), 5),
                    low=round(float(low), 5),
                    close=round(float(close), 5),
                    volume=int(rng.integers(10_000, 100_000)),
                )
            )
            price = close
            ts = ts + self._interval
        return candles

    def generate(
        self, count: int, start: Optional[datetime] = None,
    ) -> list[Candle]:
        """Generate exactly *count* consecutive candles."""
        if count <= 0:
            return []
        start = start or datetime(2025, 1, 1, tzinfo=timezone.utc)
        end = start + self._interval * (count - 1)
        return self.fetch_history("", start, end)


class MockPriceFeed:
    """Seeded random bid/ask tick stream.

    Each tick moves the bid by up to ±``max_move`` and adds a spread of
    1-5 pips.  Iteration never ends on its own; cancel the consuming task
    or stop iterating.

    Args:
        seed: Seed for ``numpy.random.default_rng``.
        interval_seconds: Delay between ticks.
        start_prices: Initial bid per pair (``BASE_QUOTE`` form).
    """

    DEFAULT_START_PRICES: dict[str, float] = {
        "EUR_USD": 1.0850,
        "GBP_USD": 1.2650,
        "USD_JPY": 149.50,
        "USD_CHF": 0.8800,
        "AUD_USD": 0.6550,
        "USD_CAD": 1.3550,
        "NZD_USD": 0.6050,
    }

    def __init__(
        self,
        seed: Optional[int] = None,
        interval_seconds: float = 2.0,
        start_prices: Optional[dict[str, float]] = None,
        max_move: float = 0.001,
    ) -> None:
        self._rng = np.random.default_rng(seed)
        self._interval = interval_seconds
        self._prices = dict(start_prices or self.DEFAULT_START_PRICES)
        self._max_move = max_move

    def next_tick(self, symbol: str) -> PriceSample:
        """Advance *symbol* by one random step and return the new tick."""
        pair = normalize_pair(symbol)
        bid = self._prices.get(pair, 1.0) + self._rng.uniform(-self._max_move, self._max_move)
        bid = max(float(bid), 0.1)
        self._prices[pair] = bid
        spread = float(self._rng.uniform(0.0001, 0.0005))
        return PriceSample(
            symbol=pair,
            bid=round(bid, 5),
            ask=round(bid + spread, 5),
            timestamp=datetime.now(timezone.utc),
        )

    async def subscribe(self, symbol: str) -> AsyncIterator[PriceSample]:
        while True:
            yield self.next_tick(symbol)
            await asyncio.sleep(self._interval)
