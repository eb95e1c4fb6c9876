"""ScalpBot — application configuration.

Loads .env variables into a typed config object.
Every variable has a default; malformed numbers fail at startup.
"""

import os
from dataclasses import dataclass
from typing import Callable

from dotenv import load_dotenv

from scalpbot.errors import InvalidConfigurationError
from scalpbot.models.strategy_config import StrategyConfig
from scalpbot.strategy.models import normalize_pair


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    trade_pair: str
    active_strategy: str
    ema_fast_period: int
    ema_slow_period: int
    rsi_period: int
    rsi_overbought: float
    rsi_oversold: float
    profit_target_pips: float
    stop_loss_pips: float
    risk_per_trade_pct: float
    max_trades_per_day: int
    breakout_lookback: int
    starting_balance: float
    poll_interval_seconds: float
    execution_delay_seconds: float
    db_path: str
    log_level: str
    health_port: int

    def strategy_config(self) -> StrategyConfig:
        """Immutable strategy snapshot for one backtest run or live session."""
        return StrategyConfig(
            selected_pair=self.trade_pair,
            active_strategy=self.active_strategy,
            ema_fast_period=self.ema_fast_period,
            ema_slow_period=self.ema_slow_period,
            rsi_period=self.rsi_period,
            rsi_overbought=self.rsi_overbought,
            rsi_oversold=self.rsi_oversold,
            profit_target_pips=self.profit_target_pips,
            stop_loss_pips=self.stop_loss_pips,
            risk_per_trade_pct=self.risk_per_trade_pct,
            max_trades_per_day=self.max_trades_per_day,
            breakout_lookback=self.breakout_lookback,
        )


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``InvalidConfigurationError`` naming every variable whose value
    cannot be parsed.
    """
    load_dotenv(dotenv_path=env_path)

    errors: list[str] = []

    def _get(name: str, default: str, cast: Callable):
        raw = os.environ.get(name, default)
        try:
            return cast(raw)
        except ValueError:
            errors.append(f"{name}={raw!r} is not a valid {cast.__name__}")
            return cast(default)

    config = Config(
        trade_pair=normalize_pair(os.environ.get("TRADE_PAIR", "EUR_USD")),
        active_strategy=os.environ.get("ACTIVE_STRATEGY", "ema_crossover"),
        ema_fast_period=_get("EMA_FAST_PERIOD", "5", int),
        ema_slow_period=_get("EMA_SLOW_PERIOD", "13", int),
        rsi_period=_get("RSI_PERIOD", "14", int),
        rsi_overbought=_get("RSI_OVERBOUGHT", "70", float),
        rsi_oversold=_get("RSI_OVERSOLD", "30", float),
        profit_target_pips=_get("PROFIT_TARGET_PIPS", "5", float),
        stop_loss_pips=_get("STOP_LOSS_PIPS", "3", float),
        risk_per_trade_pct=_get("RISK_PER_TRADE_PCT", "1.0", float),
        max_trades_per_day=_get("MAX_TRADES_PER_DAY", "10", int),
        breakout_lookback=_get("BREAKOUT_LOOKBACK", "20", int),
        starting_balance=_get("STARTING_BALANCE", "50000", float),
        poll_interval_seconds=_get("POLL_INTERVAL_SECONDS", "5", float),
        execution_delay_seconds=_get("EXECUTION_DELAY_SECONDS", "2", float),
        db_path=os.environ.get("DB_PATH", "data/scalpbot.db"),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        health_port=_get("HEALTH_PORT", "8080", int),
    )

    if errors:
        raise InvalidConfigurationError(errors)
    return config
