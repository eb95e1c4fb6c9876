"""Strategy configuration dataclass.

An immutable snapshot of the bot settings consumed by the signal
generator, the backtest engine and the live trading engine for one run.
"""

from dataclasses import dataclass, fields, replace

from scalpbot.errors import InvalidConfigurationError


STRATEGY_NAMES: tuple[str, ...] = (
    "ema_crossover",
    "rsi_divergence",
    "breakout",
    "reversal",
)


@dataclass(frozen=True)
class StrategyConfig:
    """Settings for one backtest run or one live session."""

    selected_pair: str = "EUR_USD"
    active_strategy: str = "ema_crossover"  # one of STRATEGY_NAMES
    ema_fast_period: int = 5
    ema_slow_period: int = 13
    rsi_period: int = 14
    rsi_overbought: float = 70.0
    rsi_oversold: float = 30.0
    profit_target_pips: float = 5.0
    stop_loss_pips: float = 3.0
    risk_per_trade_pct: float = 1.0
    max_trades_per_day: int = 10
    breakout_lookback: int = 20

    @property
    def warmup_period(self) -> int:
        """Candles required before signals are evaluated in a backtest."""
        return max(self.ema_slow_period, self.rsi_period)

    def with_overrides(self, **overrides) -> "StrategyConfig":
        """Return a copy with *overrides* applied (unknown keys raise ``TypeError``)."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown StrategyConfig field(s): {', '.join(sorted(unknown))}")
        return replace(self, **overrides)

    def validate(self) -> "StrategyConfig":
        """Check the settings and return ``self``.

        Raises ``InvalidConfigurationError`` listing every problem found.
        """
        errors: list[str] = []

        if not self.selected_pair:
            errors.append("selected_pair must not be empty")
        if self.active_strategy not in STRATEGY_NAMES:
            errors.append(
                f"active_strategy '{self.active_strategy}' is not one of "
                f"{', '.join(STRATEGY_NAMES)}"
            )

        for name in ("ema_fast_period", "ema_slow_period", "rsi_period", "breakout_lookback"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                errors.append(f"{name} must be a positive integer, got {value!r}")
        if (
            isinstance(self.ema_fast_period, int)
            and isinstance(self.ema_slow_period, int)
            and self.ema_fast_period >= self.ema_slow_period
        ):
            errors.append(
                f"ema_fast_period ({self.ema_fast_period}) must be shorter than "
                f"ema_slow_period ({self.ema_slow_period})"
            )

        for name in ("rsi_overbought", "rsi_oversold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 100.0:
                errors.append(f"{name} must be within [0, 100], got {value}")
        if self.rsi_oversold >= self.rsi_overbought:
            errors.append(
                f"rsi_oversold ({self.rsi_oversold}) must be below "
                f"rsi_overbought ({self.rsi_overbought})"
            )

        if self.profit_target_pips <= 0:
            errors.append(f"profit_target_pips must be positive, got {self.profit_target_pips}")
        if self.stop_loss_pips <= 0:
            errors.append(f"stop_loss_pips must be positive, got {self.stop_loss_pips}")
        if not 0.0 < self.risk_per_trade_pct <= 100.0:
            errors.append(
                f"risk_per_trade_pct must be within (0, 100], got {self.risk_per_trade_pct}"
            )
        if not isinstance(self.max_trades_per_day, int) or self.max_trades_per_day < 0:
            errors.append(
                f"max_trades_per_day must be a non-negative integer, got {self.max_trades_per_day!r}"
            )

        if errors:
            raise InvalidConfigurationError(errors)
        return self
