"""Backtest engine — replays historical candles through indicators, signals and exits.

Iterates candles chronologically with a fresh ``IndicatorEngine``,
evaluates the configured strategy once warm, and simulates each trade
against fixed pip take-profit / stop-loss levels using candle highs and
lows.  No randomness: the same candles always give the same ledger.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from scalpbot.backtest.models import BacktestReport
from scalpbot.backtest.stats import calculate_stats
from scalpbot.data.sources import CandleSource
from scalpbot.errors import DataGapError
from scalpbot.models.strategy_config import StrategyConfig
from scalpbot.models.trade import Trade
from scalpbot.risk.position_sizer import calculate_lot_size
from scalpbot.risk.sl_tp import RiskLevels, calculate_levels, resolve_exit
from scalpbot.strategy.indicator_engine import IndicatorEngine
from scalpbot.strategy.models import Candle, EquityPoint, pip_size
from scalpbot.strategy.signals import evaluate_signal

logger = logging.getLogger("scalpbot.backtest")

DEFAULT_STARTING_BALANCE = 50_000.0
GAP_POLICIES = ("skip", "fail")


class BacktestEngine:
    """Simulates the scalping strategy on historical candle data.

    Args:
        config: Strategy settings for the run (validated on ``run``).
        starting_balance: Initial virtual balance.
        gap_policy: ``"skip"`` logs and drops duplicate / out-of-order
            candles; ``"fail"`` raises ``DataGapError`` instead.
        expected_interval: Nominal bar spacing.  Larger gaps are logged
            and tolerated.
    """

    def __init__(
        self,
        config: StrategyConfig,
        starting_balance: float = DEFAULT_STARTING_BALANCE,
        gap_policy: str = "skip",
        expected_interval: Optional[timedelta] = timedelta(hours=1),
    ) -> None:
        if starting_balance <= 0:
            raise ValueError(f"starting_balance must be positive, got {starting_balance}")
        if gap_policy not in GAP_POLICIES:
            raise ValueError(f"gap_policy must be one of {GAP_POLICIES}, got '{gap_policy}'")
        self._config = config
        self._starting_balance = starting_balance
        self._gap_policy = gap_policy
        self._expected_interval = expected_interval

    # ── Public API ───────────────────────────────────────────────────────

    def run_range(
        self,
        source: CandleSource,
        start: datetime,
        end: datetime,
    ) -> BacktestReport:
        """Fetch candles for ``config.selected_pair`` from *source* and run."""
        candles = source.fetch_history(self._config.selected_pair, start, end)
        logger.info(
            "Fetched %d candles for %s (%s → %s)",
            len(candles), self._config.selected_pair, start.isoformat(), end.isoformat(),
        )
        return self.run(candles)

    def run(self, candles: Sequence[Candle]) -> BacktestReport:
        """Execute a full backtest over *candles* (oldest first).

        Returns:
            ``BacktestReport`` with the summary statistics, the closed-trade
            ledger and one equity point per accepted candle.

        Raises:
            InvalidConfigurationError: If the strategy config is invalid.
            DataGapError: On an out-of-order candle with ``gap_policy="fail"``.
        """
        config = self._config.validate()
        indicators = IndicatorEngine.from_config(config)
        pip = pip_size(config.selected_pair)

        balance = self._starting_balance
        closed_trades: list[Trade] = []
        equity_curve: list[EquityPoint] = []
        trades_per_day: dict[date, int] = {}
        open_trade: Optional[Trade] = None
        open_levels: Optional[RiskLevels] = None
        last_candle: Optional[Candle] = None
        skipped = 0
        index = 0

        for position, candle in enumerate(candles):
            # 0. Reject duplicate / out-of-order bars
            if last_candle is not None:
                if candle.timestamp <= last_candle.timestamp:
                    message = (
                        f"Candle {position} at {candle.timestamp.isoformat()} does not "
                        f"follow {last_candle.timestamp.isoformat()}"
                    )
                    if self._gap_policy == "fail":
                        raise DataGapError(message, position)
                    logger.warning("%s — skipped", message)
                    skipped += 1
                    continue
                gap = candle.timestamp - last_candle.timestamp
                if self._expected_interval is not None and gap > self._expected_interval:
                    logger.warning(
                        "Data gap of %s before candle %d (%s)",
                        gap, position, candle.timestamp.isoformat(),
                    )
            last_candle = candle

            # 1. Feed the close into the indicators
            indicators.add_candle(candle)

            # 2. Check the open trade for SL / TP
            if open_trade is not None and open_levels is not None:
                exit_ = resolve_exit(open_trade.direction, open_levels, candle.high, candle.low)
                if exit_ is not None:
                    open_trade = open_trade.close(exit_[0], candle.timestamp, exit_[1])
                    balance += open_trade.pnl
                    closed_trades.append(open_trade)
                    logger.debug("Closed %s %s: %s pnl=%.2f", open_trade.direction,
                                 open_trade.pair, open_trade.exit_reason, open_trade.pnl)
                    open_trade = None
                    open_levels = None

            # 3. Evaluate the strategy once warm
            if index >= config.warmup_period:
                day = candle.timestamp.date()
                signal = evaluate_signal(
                    indicators.snapshot(),
                    config,
                    trades_today=trades_per_day.get(day, 0),
                    timestamp=candle.timestamp,
                )
                if signal is not None and open_trade is None:
                    lot_size = calculate_lot_size(balance, config.risk_per_trade_pct)
                    open_levels = calculate_levels(
                        candle.close,
                        signal.action,
                        config.profit_target_pips,
                        config.stop_loss_pips,
                        pip_value=pip,
                    )
                    open_trade = Trade(
                        pair=config.selected_pair,
                        direction=signal.action,
                        entry_price=candle.close,
                        stop_loss=open_levels.stop_loss,
                        take_profit=open_levels.take_profit,
                        lot_size=lot_size,
                        opened_at=candle.timestamp,
                        strategy=config.active_strategy,
                        notes=signal.reason,
                    )
                    trades_per_day[day] = trades_per_day.get(day, 0) + 1

                    # 4. The entry candle's own range may already decide the trade
                    exit_ = resolve_exit(signal.action, open_levels, candle.high, candle.low)
                    if exit_ is not None:
                        open_trade = open_trade.close(exit_[0], candle.timestamp, exit_[1])
                        balance += open_trade.pnl
                        closed_trades.append(open_trade)
                        open_trade = None
                        open_levels = None

            # 5. One equity point per candle
            equity_curve.append(EquityPoint(candle.timestamp, balance))
            index += 1

        # Close any remaining position at the last close
        if open_trade is not None and last_candle is not None:
            open_trade = open_trade.close(last_candle.close, last_candle.timestamp, "end_of_data")
            balance += open_trade.pnl
            closed_trades.append(open_trade)
            equity_curve[-1] = EquityPoint(last_candle.timestamp, balance)

        result = calculate_stats(closed_trades, equity_curve, self._starting_balance)
        logger.info(
            "Backtest complete: %s %s, %d trades, PnL: $%.2f, Win rate: %.1f%%",
            config.selected_pair,
            config.active_strategy,
            result.total_trades,
            result.total_pnl,
            result.win_rate * 100,
        )

        return BacktestReport(
            pair=config.selected_pair,
            strategy=config.active_strategy,
            starting_balance=self._starting_balance,
            result=result,
            trades=closed_trades,
            equity_curve=equity_curve,
            skipped_candles=skipped,
        )
