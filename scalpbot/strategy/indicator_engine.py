"""Rolling indicator state for one symbol.

``IndicatorEngine`` accumulates closes, gain/loss samples and bar ranges
as prices arrive and exposes EMA, RSI, crossover and breakout readings
over them.  One engine belongs to exactly one symbol in one run; it is
never reset implicitly.
"""

from collections import deque
from dataclasses import dataclass
from typing import Optional

from scalpbot.models.strategy_config import StrategyConfig
from scalpbot.strategy.indicators import (
    calculate_ema,
    calculate_ema_series,
    calculate_rsi,
    ema_crossover,
    recent_range,
    rsi_action,
)
from scalpbot.strategy.models import Candle, Direction, IndicatorAction

DEFAULT_MAX_HISTORY = 500


def required_history(
    ema_fast_period: int,
    ema_slow_period: int,
    rsi_period: int,
    breakout_lookback: int,
) -> int:
    """Smallest history bound that still serves every configured period."""
    return max(ema_fast_period, ema_slow_period, rsi_period, breakout_lookback + 1) + 1


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Indicator readings at one evaluation point.

    Fields are ``None`` while the corresponding indicator is still warming up.
    """

    price: Optional[float]
    ema_fast: Optional[float]
    ema_slow: Optional[float]
    crossover: Optional[Direction]
    rsi: Optional[float]
    rsi_signal: Optional[IndicatorAction]
    recent_high: Optional[float]
    recent_low: Optional[float]
    sample_count: int
    warming_up: bool


class IndicatorEngine:
    """Per-symbol EMA / RSI / range accumulator.

    Args:
        ema_fast_period: Fast EMA period (crossover series).
        ema_slow_period: Slow EMA period (crossover series).
        rsi_period: Number of gain/loss samples averaged by the RSI.
        rsi_overbought: RSI level at or above which the RSI signal is ``"sell"``.
        rsi_oversold: RSI level at or below which the RSI signal is ``"buy"``.
        breakout_lookback: Bars used for the breakout high/low.
        max_history: Samples kept in memory; older samples are discarded.
    """

    def __init__(
        self,
        ema_fast_period: int = 5,
        ema_slow_period: int = 13,
        rsi_period: int = 14,
        rsi_overbought: float = 70.0,
        rsi_oversold: float = 30.0,
        breakout_lookback: int = 20,
        max_history: int = DEFAULT_MAX_HISTORY,
    ) -> None:
        required = required_history(
            ema_fast_period, ema_slow_period, rsi_period, breakout_lookback,
        )
        if max_history < required:
            raise ValueError(
                f"max_history must be at least {required}, got {max_history}"
            )
        self.ema_fast_period = ema_fast_period
        self.ema_slow_period = ema_slow_period
        self.rsi_period = rsi_period
        self.rsi_overbought = rsi_overbought
        self.rsi_oversold = rsi_oversold
        self.breakout_lookback = breakout_lookback
        self._max_history = max_history

        self._prices: deque[float] = deque(maxlen=max_history)
        self._gains: deque[float] = deque(maxlen=max_history)
        self._losses: deque[float] = deque(maxlen=max_history)
        self._highs: deque[float] = deque(maxlen=max_history)
        self._lows: deque[float] = deque(maxlen=max_history)
        self._count: int = 0
        self._crossover_mark: Optional[int] = None

    @classmethod
    def from_config(
        cls,
        config: StrategyConfig,
        max_history: int = DEFAULT_MAX_HISTORY,
    ) -> "IndicatorEngine":
        """Build an engine for *config*.

        *max_history* is widened when the configured periods need more
        samples than it allows.
        """
        needed = required_history(
            config.ema_fast_period,
            config.ema_slow_period,
            config.rsi_period,
            config.breakout_lookback,
        )
        return cls(
            ema_fast_period=config.ema_fast_period,
            ema_slow_period=config.ema_slow_period,
            rsi_period=config.rsi_period,
            rsi_overbought=config.rsi_overbought,
            rsi_oversold=config.rsi_oversold,
            breakout_lookback=config.breakout_lookback,
            max_history=max(max_history, needed),
        )

    # ── Mutation ─────────────────────────────────────────────────────────

    def add_price(
        self,
        price: float,
        high: Optional[float] = None,
        low: Optional[float] = None,
    ) -> None:
        """Append one price (tick or candle close) to every accumulator."""
        if self._prices:
            delta = price - self._prices[-1]
        else:
            delta = 0.0
        self._prices.append(price)
        self._gains.append(max(delta, 0.0))
        self._losses.append(abs(min(delta, 0.0)))
        self._highs.append(price if high is None else high)
        self._lows.append(price if low is None else low)
        self._count += 1

    def add_candle(self, candle: Candle) -> None:
        self.add_price(candle.close, candle.high, candle.low)

    def reset(self) -> None:
        """Drop all accumulated history."""
        for buf in (self._prices, self._gains, self._losses, self._highs, self._lows):
            buf.clear()
        self._count = 0
        self._crossover_mark = None

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def sample_count(self) -> int:
        """Total samples added since creation (or the last reset)."""
        return self._count

    @property
    def prices(self) -> list[float]:
        return list(self._prices)

    @property
    def last_price(self) -> Optional[float]:
        return self._prices[-1] if self._prices else None

    @property
    def warmup_period(self) -> int:
        return max(self.ema_slow_period, self.rsi_period)

    @property
    def is_warming_up(self) -> bool:
        return len(self._prices) < self.warmup_period

    def ema(self, period: int) -> Optional[float]:
        """SMA-seeded EMA over the retained prices."""
        return calculate_ema(list(self._prices), period)

    def ema_series(self, period: int) -> list[float]:
        """First-sample-seeded EMA series over the retained prices."""
        return calculate_ema_series(list(self._prices), period)

    def rsi(self, period: Optional[int] = None) -> Optional[float]:
        return calculate_rsi(
            list(self._gains), list(self._losses), period or self.rsi_period,
        )

    def rsi_signal(self) -> Optional[IndicatorAction]:
        """``"buy"`` / ``"sell"`` / ``"hold"`` from the RSI, or ``None`` while warming up."""
        rsi = self.rsi()
        if rsi is None:
            return None
        return rsi_action(rsi, self.rsi_overbought, self.rsi_oversold)

    def breakout_levels(self) -> Optional[tuple[float, float]]:
        """``(high, low)`` of the *breakout_lookback* bars before the latest one."""
        if len(self._highs) < self.breakout_lookback + 1:
            return None
        highs = list(self._highs)[:-1]
        lows = list(self._lows)[:-1]
        return recent_range(highs, lows, self.breakout_lookback)

    def crossover_signal(self, consume: bool = True) -> Optional[Direction]:
        """Detect a fast/slow EMA crossover since the previous evaluation.

        The latest fast/slow relation is compared with the relation at the
        previous call (the penultimate sample when called on every price,
        the first retained sample on the first call).  With *consume* the
        evaluation point advances, so a cross is reported once.

        Both series start from the same price, so the first call reports
        whatever separation has built up since the start of history.
        """
        fast = self.ema_series(self.ema_fast_period)
        slow = self.ema_series(self.ema_slow_period)
        if len(fast) < 2 or len(slow) < 2:
            return None
        if self._crossover_mark is not None and self._crossover_mark >= self._count:
            return None

        latest = len(fast) - 1
        if self._crossover_mark is None:
            prev = 0
        else:
            prev = max(0, latest - (self._count - self._crossover_mark))

        if consume:
            self._crossover_mark = self._count

        return ema_crossover(
            [fast[prev], fast[latest]],
            [slow[prev], slow[latest]],
        )

    def snapshot(self, consume: bool = True) -> IndicatorSnapshot:
        """Collect every reading at the current point."""
        levels = self.breakout_levels()
        rsi = self.rsi()
        return IndicatorSnapshot(
            price=self.last_price,
            ema_fast=self.ema(self.ema_fast_period),
            ema_slow=self.ema(self.ema_slow_period),
            crossover=self.crossover_signal(consume=consume),
            rsi=rsi,
            rsi_signal=(
                rsi_action(rsi, self.rsi_overbought, self.rsi_oversold)
                if rsi is not None else None
            ),
            recent_high=levels[0] if levels else None,
            recent_low=levels[1] if levels else None,
            sample_count=self._count,
            warming_up=self.is_warming_up,
        )
