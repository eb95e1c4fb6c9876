"""Backtest statistics — pure functions for trade-series analysis.

Every ratio is guarded: an empty ledger or a zero denominator yields
``0.0`` rather than ``NaN`` or an exception.  A trade with exactly zero
P&L counts as a loss, so ``winning + losing == total`` always holds.
"""

import math
from typing import Sequence

from scalpbot.backtest.models import BacktestResult
from scalpbot.models.trade import Trade
from scalpbot.strategy.models import EquityPoint


def calculate_stats(
    trades: Sequence[Trade],
    equity_curve: Sequence[EquityPoint],
    starting_balance: float,
) -> BacktestResult:
    """Compute summary statistics from closed trades and an equity curve.

    Trades that are not closed are ignored.

    Returns:
        ``BacktestResult`` with trade counts, ratios, drawdown and balance
        figures.  ``final_balance`` is the last equity point (or
        *starting_balance* when the curve is empty).
    """
    pnls = [t.pnl for t in trades if t.is_closed and t.pnl is not None]
    equity_values = [p.equity_value for p in equity_curve]
    final_balance = equity_values[-1] if equity_values else starting_balance

    if not pnls:
        return BacktestResult(
            final_balance=final_balance,
            net_return_pct=_net_return_pct(final_balance, starting_balance),
            max_drawdown=max_drawdown(equity_values, starting_balance),
            max_equity=max(equity_values, default=starting_balance),
        )

    winners = [p for p in pnls if p > 0]
    losers = [p for p in pnls if p <= 0]
    total_pnl = sum(pnls)
    max_dd = max_drawdown(equity_values, starting_balance)
    max_wins, max_losses = consecutive_streaks(pnls)

    return BacktestResult(
        total_trades=len(pnls),
        winning_trades=len(winners),
        losing_trades=len(losers),
        total_pnl=total_pnl,
        win_rate=win_rate(len(winners), len(pnls)),
        max_drawdown=max_dd,
        sharpe_ratio=sharpe_ratio(pnls),
        profit_factor=profit_factor(pnls),
        final_balance=final_balance,
        net_return_pct=_net_return_pct(final_balance, starting_balance),
        max_equity=max(equity_values, default=final_balance),
        expectancy=expectancy(pnls),
        average_win=sum(winners) / len(winners) if winners else 0.0,
        average_loss=sum(losers) / len(losers) if losers else 0.0,
        largest_win=max(winners, default=0.0),
        largest_loss=min(losers, default=0.0),
        max_consecutive_wins=max_wins,
        max_consecutive_losses=max_losses,
        recovery_factor=recovery_factor(total_pnl, max_dd),
    )


# ── Ratios ───────────────────────────────────────────────────────────────


def win_rate(winning_trades: int, total_trades: int) -> float:
    """Fraction of winning trades; ``0.0`` when there are no trades."""
    if total_trades <= 0:
        return 0.0
    return winning_trades / total_trades


def profit_factor(pnls: Sequence[float]) -> float:
    """Gross profit divided by gross loss; ``0.0`` when there is no loss."""
    gross_profit = sum(max(p, 0.0) for p in pnls)
    gross_loss = abs(sum(min(p, 0.0) for p in pnls))
    if gross_loss == 0:
        return 0.0
    return gross_profit / gross_loss


def expectancy(pnls: Sequence[float]) -> float:
    """Average P&L per trade."""
    if not pnls:
        return 0.0
    return sum(pnls) / len(pnls)


def sharpe_ratio(pnls: Sequence[float]) -> float:
    """Per-trade Sharpe ratio: mean / population standard deviation.

    Zero-P&L trades are excluded and no risk-free rate is subtracted.
    Returns ``0.0`` with fewer than 2 non-zero trades or zero variance.
    """
    returns = [p for p in pnls if p != 0]
    n = len(returns)
    if n < 2:
        return 0.0
    mean = sum(returns) / n
    variance = sum((r - mean) ** 2 for r in returns) / n
    std = math.sqrt(variance)
    if std == 0:
        return 0.0
    return mean / std


def max_drawdown(
    equity_values: Sequence[float],
    starting_balance: float,
) -> float:
    """Largest peak-to-trough decline of the equity curve, in account currency.

    The running peak starts at *starting_balance*.  Always ``>= 0``.
    """
    peak = starting_balance
    max_dd = 0.0
    for value in equity_values:
        if value > peak:
            peak = value
        dd = peak - value
        if dd > max_dd:
            max_dd = dd
    return max_dd


def consecutive_streaks(pnls: Sequence[float]) -> tuple[int, int]:
    """Longest run of winning and of losing trades, as ``(wins, losses)``."""
    max_wins = max_losses = 0
    current_wins = current_losses = 0
    for p in pnls:
        if p > 0:
            current_wins += 1
            current_losses = 0
            max_wins = max(max_wins, current_wins)
        else:
            current_losses += 1
            current_wins = 0
            max_losses = max(max_losses, current_losses)
    return max_wins, max_losses


def recovery_factor(total_pnl: float, max_dd: float) -> float:
    """Net P&L relative to the worst drawdown (floored at 1 unit of currency)."""
    return total_pnl / max(max_dd, 1.0)


def _net_return_pct(final_balance: float, starting_balance: float) -> float:
    if starting_balance == 0:
        return 0.0
    return (final_balance - starting_balance) / starting_balance * 100.0
