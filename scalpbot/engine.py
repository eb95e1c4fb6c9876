"""ScalpBot — live trading engine (paper monitoring loop).

Consumes ticks from a ``PriceSource`` into a per-symbol ``IndicatorEngine``
and, every poll interval, evaluates the configured strategy against the
latest readings.  Signals go to the paper executor and to any registered
listeners; trade outcomes feed the session statistics.
"""

import asyncio
import contextlib
import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from typing import Callable, Optional

from scalpbot.api.routers import StatusStore
from scalpbot.data.sources import PriceSource
from scalpbot.execution.paper import PaperExecutor
from scalpbot.models.strategy_config import StrategyConfig
from scalpbot.models.trade import Trade
from scalpbot.risk.position_sizer import calculate_lot_size
from scalpbot.strategy.indicator_engine import DEFAULT_MAX_HISTORY, IndicatorEngine
from scalpbot.strategy.models import PriceSample, TradingSignal, normalize_pair
from scalpbot.strategy.signals import evaluate_signal

logger = logging.getLogger("scalpbot")

SignalListener = Callable[[TradingSignal], None]


@dataclass
class SessionStats:
    """Running statistics of one live session."""

    trading_day: Optional[date] = None
    trades_today: int = 0
    total_trades: int = 0
    winning_trades: int = 0
    total_pnl: float = 0.0
    consecutive_wins: int = 0
    consecutive_losses: int = 0

    @property
    def win_rate(self) -> float:
        if self.total_trades == 0:
            return 0.0
        return self.winning_trades / self.total_trades

    def record_close(self, trade: Trade) -> None:
        """Fold one closed trade into the totals (zero P&L counts as a loss)."""
        self.total_trades += 1
        self.total_pnl += trade.pnl or 0.0
        if trade.pnl is not None and trade.pnl > 0:
            self.winning_trades += 1
            self.consecutive_wins += 1
            self.consecutive_losses = 0
        else:
            self.consecutive_losses += 1
            self.consecutive_wins = 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["trading_day"] = self.trading_day.isoformat() if self.trading_day else None
        data["win_rate"] = self.win_rate
        return data


class TradingEngine:
    """Evaluates one strategy on a live tick stream, one cycle per poll.

    Args:
        config: Strategy settings (validated on construction).
        feed: Tick source; subscribed to ``config.selected_pair`` by ``run``.
        executor: Paper executor receiving fired signals.
        status: Optional status store for the internal API.
        starting_balance: Virtual balance used for position sizing.
        poll_interval: Seconds between evaluation cycles.
    """

    def __init__(
        self,
        config: StrategyConfig,
        feed: PriceSource,
        executor: PaperExecutor,
        status: Optional[StatusStore] = None,
        starting_balance: float = 50_000.0,
        poll_interval: float = 5.0,
        max_history: int = DEFAULT_MAX_HISTORY,
    ) -> None:
        self._pair = normalize_pair(config.validate().selected_pair)
        # Signals and trades carry the pair in the same form as the feed.
        self._config = config.with_overrides(selected_pair=self._pair)
        self._feed = feed
        self._executor = executor
        self._status = status
        self._balance = starting_balance
        self._poll_interval = poll_interval
        self._max_history = max_history

        self._indicators: dict[str, IndicatorEngine] = {}
        self._latest: dict[str, PriceSample] = {}
        self._stats = SessionStats()
        self._listeners: list[SignalListener] = []
        self._running = False
        self._cycle_count = 0
        self._feed_task: Optional[asyncio.Task] = None

        executor.ledger.add_listener(self._on_trade_update)

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def pair(self) -> str:
        return self._pair

    @property
    def balance(self) -> float:
        return self._balance

    @property
    def stats(self) -> SessionStats:
        return self._stats

    @property
    def is_running(self) -> bool:
        return self._running

    def add_signal_listener(self, listener: SignalListener) -> None:
        """Register a consumer (notifier, logger) for every fired signal."""
        self._listeners.append(listener)

    def indicators_for(self, symbol: str) -> IndicatorEngine:
        """The indicator engine owned by *symbol* (created on first use)."""
        symbol = normalize_pair(symbol)
        engine = self._indicators.get(symbol)
        if engine is None:
            engine = IndicatorEngine.from_config(self._config, max_history=self._max_history)
            self._indicators[symbol] = engine
        return engine

    # ── Price intake ─────────────────────────────────────────────────────

    def ingest(self, sample: PriceSample) -> None:
        """Feed one tick into the symbol's indicators and the executor."""
        symbol = normalize_pair(sample.symbol)
        self.indicators_for(symbol).add_price(sample.bid)
        self._latest[symbol] = sample
        self._executor.on_price(sample)

    async def _consume_feed(self) -> None:
        async for sample in self._feed.subscribe(self._pair):
            self.ingest(sample)
            if not self._running:
                break

    # ── Lifecycle ────────────────────────────────────────────────────────

    def stop(self) -> None:
        """Signal the engine to stop after the current cycle."""
        self._running = False

    def cancel_all_pending(self) -> int:
        """Cancel every pending/open paper trade."""
        return self._executor.cancel_all_pending()

    def reset_daily_stats(self, day: Optional[date] = None) -> None:
        """Start a new trading day: the daily trade counter goes back to zero."""
        self._stats.trades_today = 0
        self._stats.trading_day = day or datetime.now(timezone.utc).date()
        logger.info("Daily stats reset for %s", self._stats.trading_day.isoformat())

    # ── Polling loop ─────────────────────────────────────────────────────

    async def run(self, max_cycles: int = 0) -> list[dict]:
        """Consume the feed and run evaluation cycles until stopped.

        Args:
            max_cycles: Stop after this many cycles (0 = unlimited).

        Returns:
            List of per-cycle result dicts.
        """
        self._running = True
        self._feed_task = asyncio.create_task(self._consume_feed())
        self._push_status(running=True, started_at=datetime.now(timezone.utc).isoformat())
        results: list[dict] = []
        cycle = 0

        try:
            while self._running:
                cycle += 1
                try:
                    result = await self.run_once()
                except Exception as exc:
                    logger.error("Cycle %d error: %s", cycle, exc)
                    result = {"action": "error", "reason": str(exc)}
                    self._record_signal(None, "error", f"ERROR: {exc}")
                results.append(result)
                logger.debug("Cycle %d: %s", cycle, result.get("action", "unknown"))

                if max_cycles > 0 and cycle >= max_cycles:
                    break

                # Interruptible sleep
                remaining = self._poll_interval
                while remaining > 0 and self._running:
                    step = min(remaining, 1.0)
                    await asyncio.sleep(step)
                    remaining -= step
        finally:
            self._running = False
            if self._feed_task is not None:
                self._feed_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._feed_task
                self._feed_task = None
            self._push_status(running=False)

        return results

    # ── Single cycle ─────────────────────────────────────────────────────

    async def run_once(self, utc_now: Optional[datetime] = None) -> dict:
        """Execute one evaluation cycle.

        Returns a dict describing the action taken:

        - ``{"action": "skipped", "reason": "no_price" | "no_signal" | "daily_limit" | "trade_active"}``
        - ``{"action": "warming_up", "samples": int, "required": int}``
        - ``{"action": "trade_opened", ...}``

        Args:
            utc_now: Current UTC datetime.  Defaults to ``datetime.now(UTC)``.
        """
        if utc_now is None:
            utc_now = datetime.now(timezone.utc)
        self._cycle_count += 1

        today = utc_now.date()
        if self._stats.trading_day != today:
            self.reset_daily_stats(today)

        result = self._evaluate(utc_now)
        self._push_status(
            cycle_count=self._cycle_count,
            last_cycle_at=utc_now.isoformat(),
        )
        return result

    def _evaluate(self, utc_now: datetime) -> dict:
        sample = self._latest.get(self._pair)
        if sample is None:
            return {"action": "skipped", "reason": "no_price"}

        indicators = self.indicators_for(self._pair)
        if indicators.is_warming_up:
            return {
                "action": "warming_up",
                "samples": indicators.sample_count,
                "required": indicators.warmup_period,
            }

        snapshot = indicators.snapshot()
        signal = evaluate_signal(
            snapshot,
            self._config,
            trades_today=self._stats.trades_today,
            timestamp=utc_now,
        )
        if signal is None:
            if self._stats.trades_today >= self._config.max_trades_per_day:
                logger.info(
                    "Daily trade limit reached (%d) — no new trades today",
                    self._config.max_trades_per_day,
                )
                return {"action": "skipped", "reason": "daily_limit"}
            return {"action": "skipped", "reason": "no_signal"}

        logger.info("Signal: %s (%s)", signal.description, signal.reason)
        for listener in self._listeners:
            listener(signal)

        if any(t.pair == self._pair for t in self._executor.ledger.active_trades()):
            self._record_signal(signal, "skipped", "trade already active")
            return {"action": "skipped", "reason": "trade_active"}

        lot_size = calculate_lot_size(self._balance, self._config.risk_per_trade_pct)
        trade = self._executor.open_trade(signal, sample.bid, lot_size, self._config)
        self._stats.trades_today += 1
        self._record_signal(signal, "traded", signal.reason)

        return {
            "action": "trade_opened",
            "trade_id": trade.id,
            "direction": trade.direction,
            "entry_price": trade.entry_price,
            "stop_loss": trade.stop_loss,
            "take_profit": trade.take_profit,
            "lot_size": trade.lot_size,
            "reason": signal.reason,
        }

    # ── Callbacks ────────────────────────────────────────────────────────

    def _on_trade_update(self, trade: Trade) -> None:
        if trade.is_closed:
            self._stats.record_close(trade)
            self._balance += trade.pnl
            self._push_status()
        elif trade.status == "cancelled":
            logger.info("Trade %s cancelled", trade.id)

    def _record_signal(
        self,
        signal: Optional[TradingSignal],
        status: str,
        reason: str,
    ) -> None:
        if self._status is None:
            return
        self._status.record_signal({
            "pair": self._pair,
            "direction": signal.action if signal else None,
            "confidence": signal.confidence if signal else None,
            "status": status,
            "reason": reason,
            "evaluated_at": (
                signal.timestamp if signal else datetime.now(timezone.utc)
            ).isoformat(),
        })
        if signal is not None:
            self._status.update_bot_status(last_signal_time=signal.timestamp.isoformat())

    def _push_status(self, **fields) -> None:
        if self._status is None:
            return
        indicators = self._indicators.get(self._pair)
        self._status.update_bot_status(
            pair=self._pair,
            strategy=self._config.active_strategy,
            balance=round(self._balance, 2),
            warming_up=indicators.is_warming_up if indicators else True,
            samples=indicators.sample_count if indicators else 0,
            **{k: v for k, v in self._stats.to_dict().items() if k != "trading_day"},
            **fields,
        )
