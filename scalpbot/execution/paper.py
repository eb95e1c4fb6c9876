"""Paper executor — simulated fills and delayed outcomes for live monitoring.

A signal becomes a ``pending`` trade in the ledger.  After
``execution_delay`` seconds the trade is settled against the price
extremes observed since it was opened: take-profit or stop-loss if either
level was touched (stop-loss first), otherwise a close at the latest
price.  Settling a trade that has since been cancelled is a no-op.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from scalpbot.execution.ledger import TradeLedger
from scalpbot.models.strategy_config import StrategyConfig
from scalpbot.models.trade import Trade
from scalpbot.risk.sl_tp import RiskLevels, calculate_levels, resolve_exit
from scalpbot.strategy.models import PriceSample, TradingSignal, normalize_pair, pip_size

logger = logging.getLogger("scalpbot.paper")


class PaperExecutor:
    """Simulated order execution against a ``TradeLedger``.

    Args:
        ledger: Where trades are recorded.
        execution_delay: Seconds between opening and settling a trade.
    """

    def __init__(self, ledger: TradeLedger, execution_delay: float = 2.0) -> None:
        if execution_delay < 0:
            raise ValueError(f"execution_delay must be >= 0, got {execution_delay}")
        self._ledger = ledger
        self._delay = execution_delay
        self._extremes: dict[str, tuple[float, float]] = {}
        self._last_price: dict[str, float] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def ledger(self) -> TradeLedger:
        return self._ledger

    # ── Orders ───────────────────────────────────────────────────────────

    def open_trade(
        self,
        signal: TradingSignal,
        entry_price: float,
        lot_size: float,
        config: StrategyConfig,
        schedule: bool = True,
    ) -> Trade:
        """Record a pending trade for *signal* and schedule its outcome.

        Scheduling requires a running event loop; pass ``schedule=False``
        to settle manually via ``settle``.
        """
        levels = calculate_levels(
            entry_price,
            signal.action,
            config.profit_target_pips,
            config.stop_loss_pips,
            pip_value=pip_size(signal.pair),
        )
        trade = Trade(
            pair=signal.pair,
            direction=signal.action,
            entry_price=entry_price,
            stop_loss=levels.stop_loss,
            take_profit=levels.take_profit,
            lot_size=lot_size,
            opened_at=signal.timestamp,
            strategy=config.active_strategy,
            status="pending",
            notes=signal.reason,
        )
        self._ledger.append(trade)
        self._extremes[trade.id] = (entry_price, entry_price)
        self._last_price.setdefault(normalize_pair(trade.pair), entry_price)
        logger.info(
            "Paper %s %s @ %.5f  SL=%.5f  TP=%.5f  lots=%.2f",
            trade.direction.upper(), trade.pair, entry_price,
            trade.stop_loss, trade.take_profit, lot_size,
        )

        if schedule:
            task = asyncio.get_running_loop().create_task(
                self._settle_after_delay(trade.id)
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return trade

    def on_price(self, sample: PriceSample) -> None:
        """Track the bid extremes of every active trade on ``sample.symbol``."""
        price = sample.bid
        symbol = normalize_pair(sample.symbol)
        self._last_price[symbol] = price
        for trade_id, (high, low) in list(self._extremes.items()):
            trade = self._ledger.get(trade_id)
            if trade is None or normalize_pair(trade.pair) != symbol:
                continue
            self._extremes[trade_id] = (max(high, price), min(low, price))

    async def settle(
        self,
        trade_id: str,
        closed_at: Optional[datetime] = None,
    ) -> Optional[Trade]:
        """Close *trade_id* from the prices seen so far.

        Returns the closed trade, or ``None`` if the trade is unknown or no
        longer active (for example cancelled while waiting).
        """
        extremes = self._extremes.pop(trade_id, None)
        trade = self._ledger.get(trade_id)
        if trade is None or not trade.is_active:
            logger.debug("Outcome for %s ignored (no longer active)", trade_id)
            return None

        high, low = extremes or (trade.entry_price, trade.entry_price)
        exit_ = resolve_exit(
            trade.direction,
            RiskLevels(stop_loss=trade.stop_loss, take_profit=trade.take_profit),
            high,
            low,
        )
        if exit_ is None:
            exit_ = (
                self._last_price.get(normalize_pair(trade.pair), trade.entry_price),
                "expired",
            )

        closed = trade.close(
            exit_[0],
            closed_at or datetime.now(timezone.utc),
            exit_[1],
        )
        try:
            self._ledger.replace(closed)
        except ValueError:
            logger.debug("Outcome for %s ignored (cancelled concurrently)", trade_id)
            return None
        logger.info(
            "Paper trade %s closed: %s pnl=%.2f", trade.id, closed.exit_reason, closed.pnl,
        )
        return closed

    def cancel_all_pending(self, reason: str = "cancelled") -> int:
        """Cancel every pending/open trade.  Returns the number cancelled."""
        cancelled = 0
        for trade in self._ledger.active_trades():
            try:
                self._ledger.replace(trade.cancel(reason))
            except ValueError:
                continue
            self._extremes.pop(trade.id, None)
            cancelled += 1
        if cancelled:
            logger.info("Cancelled %d pending trade(s)", cancelled)
        return cancelled

    async def drain(self) -> None:
        """Wait for every scheduled outcome to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))

    # ── Internal ─────────────────────────────────────────────────────────

    async def _settle_after_delay(self, trade_id: str) -> None:
        await asyncio.sleep(self._delay)
        await self.settle(trade_id)
