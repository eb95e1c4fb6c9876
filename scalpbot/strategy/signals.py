"""Entry signal evaluation — pure functions, no I/O.

Each strategy rule reads an ``IndicatorSnapshot`` and returns a
``SignalDecision`` or ``None``.  ``evaluate_signal`` applies the daily
trade limit, dispatches to the configured rule and wraps the decision in
a ``TradingSignal``.  A rule whose inputs are still warming up returns
``None``; nothing here raises for missing history.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from scalpbot.models.strategy_config import StrategyConfig
from scalpbot.strategy.indicator_engine import IndicatorSnapshot
from scalpbot.strategy.models import Direction, TradingSignal

logger = logging.getLogger("scalpbot.signals")


@dataclass(frozen=True)
class SignalDecision:
    """Direction, confidence and rationale chosen by one strategy rule."""

    action: Direction
    confidence: float
    reason: str


# ── Strategy rules ───────────────────────────────────────────────────────


def ema_crossover_rule(snapshot: IndicatorSnapshot) -> Optional[SignalDecision]:
    """Fast EMA crossing the slow EMA."""
    if snapshot.crossover == "buy":
        return SignalDecision("buy", 0.75, "EMA crossover — fast above slow")
    if snapshot.crossover == "sell":
        return SignalDecision("sell", 0.75, "EMA crossover — fast below slow")
    return None


def rsi_divergence_rule(snapshot: IndicatorSnapshot) -> Optional[SignalDecision]:
    """RSI at or beyond the oversold / overbought thresholds."""
    if snapshot.rsi_signal == "buy":
        return SignalDecision("buy", 0.65, "RSI oversold signal")
    if snapshot.rsi_signal == "sell":
        return SignalDecision("sell", 0.65, "RSI overbought signal")
    return None


def breakout_rule(snapshot: IndicatorSnapshot) -> Optional[SignalDecision]:
    """Price leaving the recent N-bar high/low range."""
    if (
        snapshot.price is None
        or snapshot.recent_high is None
        or snapshot.recent_low is None
    ):
        return None
    if snapshot.price > snapshot.recent_high:
        return SignalDecision("buy", 0.60, "Price breakout above resistance")
    if snapshot.price < snapshot.recent_low:
        return SignalDecision("sell", 0.60, "Price breakout below support")
    return None


def reversal_rule(snapshot: IndicatorSnapshot) -> Optional[SignalDecision]:
    """EMA crossover confirmed by an RSI signal in the same direction."""
    if snapshot.crossover is None or snapshot.rsi_signal is None:
        return None
    if snapshot.crossover == snapshot.rsi_signal:
        return SignalDecision(
            snapshot.crossover, 0.70, "EMA + RSI reversal confirmation",
        )
    return None


# ── Evaluation ───────────────────────────────────────────────────────────


def evaluate_signal(
    snapshot: IndicatorSnapshot,
    config: StrategyConfig,
    trades_today: int = 0,
    timestamp: Optional[datetime] = None,
) -> Optional[TradingSignal]:
    """Evaluate the configured strategy against one indicator snapshot.

    Args:
        snapshot: Current indicator readings for ``config.selected_pair``.
        config: Strategy settings (active strategy, daily limit).
        trades_today: Trades already taken on the current trading day.
        timestamp: Signal time.  Defaults to ``datetime.now(UTC)``.

    Returns:
        ``TradingSignal`` if the rule fires, else ``None`` (no match, daily
        limit reached, or not enough history).
    """
    # Imported here: the registry imports the rules defined above.
    from scalpbot.strategy.registry import get_strategy_rule

    if trades_today >= config.max_trades_per_day:
        logger.debug(
            "Daily trade limit reached for %s (%d/%d)",
            config.selected_pair, trades_today, config.max_trades_per_day,
        )
        return None

    rule = get_strategy_rule(config.active_strategy)
    decision = rule(snapshot)
    if decision is None:
        return None

    return TradingSignal(
        pair=config.selected_pair,
        action=decision.action,
        confidence=decision.confidence,
        reason=decision.reason,
        timestamp=timestamp or datetime.now(timezone.utc),
    )
