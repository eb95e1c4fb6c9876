"""Tests for scalpbot.backtest.stats — performance statistics."""

from datetime import datetime, timedelta, timezone

import pytest

from scalpbot.backtest.stats import (
    calculate_stats,
    consecutive_streaks,
    expectancy,
    max_drawdown,
    profit_factor,
    recovery_factor,
    sharpe_ratio,
    win_rate,
)
from scalpbot.models.trade import Trade
from scalpbot.strategy.models import EquityPoint


_T0 = datetime(2025, 1, 6, tzinfo=timezone.utc)


def _closed(pnl: float, i: int = 0) -> Trade:
    return Trade(
        pair="EUR_USD",
        direction="buy",
        entry_price=1.1,
        stop_loss=1.0997,
        take_profit=1.1005,
        lot_size=1.0,
        opened_at=_T0 + timedelta(hours=i),
        strategy="ema_crossover",
        status="closed",
        exit_price=1.1,
        closed_at=_T0 + timedelta(hours=i, minutes=30),
        pnl=pnl,
    )


def _curve(values):
    return [EquityPoint(_T0 + timedelta(hours=i), v) for i, v in enumerate(values)]


# ── Ratios ───────────────────────────────────────────────────────────────


class TestRatios:
    def test_win_rate(self):
        assert win_rate(3, 4) == 0.75
        assert win_rate(0, 0) == 0.0

    def test_profit_factor(self):
        assert profit_factor([30.0, -10.0, 20.0, -15.0]) == pytest.approx(2.0)

    def test_profit_factor_zero_without_losses(self):
        assert profit_factor([10.0, 5.0]) == 0.0
        assert profit_factor([]) == 0.0

    def test_expectancy(self):
        assert expectancy([10.0, -4.0]) == pytest.approx(3.0)
        assert expectancy([]) == 0.0

    def test_sharpe_population_std(self):
        # mean 3, population std 1
        assert sharpe_ratio([2.0, 4.0]) == pytest.approx(3.0)

    def test_sharpe_excludes_zero_pnl(self):
        assert sharpe_ratio([0.0, 2.0, 0.0, 4.0]) == pytest.approx(3.0)

    def test_sharpe_degenerate_cases(self):
        assert sharpe_ratio([]) == 0.0
        assert sharpe_ratio([5.0]) == 0.0
        assert sharpe_ratio([5.0, 0.0]) == 0.0
        assert sharpe_ratio([2.0, 2.0, 2.0]) == 0.0

    def test_recovery_factor_floor(self):
        assert recovery_factor(50.0, 0.0) == 50.0
        assert recovery_factor(100.0, 25.0) == 4.0

    def test_consecutive_streaks(self):
        assert consecutive_streaks([1, 2, -1, 0, -3, 4]) == (2, 3)
        assert consecutive_streaks([]) == (0, 0)


class TestMaxDrawdown:
    def test_non_decreasing_curve_has_no_drawdown(self):
        assert max_drawdown([50_000, 50_000, 50_010, 50_020], 50_000) == 0.0

    def test_peak_to_trough(self):
        values = [50_100, 49_900, 50_200, 50_000, 50_300]
        assert max_drawdown(values, 50_000) == pytest.approx(200.0)

    def test_peak_starts_at_starting_balance(self):
        assert max_drawdown([49_000, 49_500], 50_000) == pytest.approx(1_000.0)

    def test_never_negative(self):
        assert max_drawdown([], 50_000) == 0.0


# ── Aggregate ────────────────────────────────────────────────────────────


class TestCalculateStats:
    def test_empty(self):
        result = calculate_stats([], [], 50_000.0)
        assert result.total_trades == 0
        assert result.win_rate == 0.0
        assert result.final_balance == 50_000.0
        assert result.max_equity == 50_000.0
        assert result.net_return_pct == 0.0

    def test_full_summary(self):
        trades = [_closed(30.0, 0), _closed(-10.0, 1), _closed(20.0, 2), _closed(-15.0, 3)]
        curve = _curve([50_030, 50_020, 50_040, 50_025])
        result = calculate_stats(trades, curve, 50_000.0)

        assert result.total_trades == 4
        assert result.winning_trades == 2
        assert result.losing_trades == 2
        assert result.total_pnl == pytest.approx(25.0)
        assert result.win_rate == 0.5
        assert result.profit_factor == pytest.approx(2.0)
        assert result.max_drawdown == pytest.approx(15.0)
        assert result.final_balance == 50_025
        assert result.max_equity == 50_040
        assert result.net_return_pct == pytest.approx(0.05)
        assert result.expectancy == pytest.approx(6.25)
        assert result.average_win == pytest.approx(25.0)
        assert result.average_loss == pytest.approx(-12.5)
        assert result.largest_win == 30.0
        assert result.largest_loss == -15.0
        assert result.max_consecutive_wins == 1
        assert result.max_consecutive_losses == 1

    def test_zero_pnl_counts_as_loss(self):
        result = calculate_stats([_closed(10.0), _closed(0.0, 1)], _curve([50_010, 50_010]), 50_000.0)
        assert result.winning_trades == 1
        assert result.losing_trades == 1
        assert result.winning_trades + result.losing_trades == result.total_trades

    def test_open_trades_ignored(self):
        open_trade = Trade(
            pair="EUR_USD", direction="sell", entry_price=1.1, stop_loss=1.1003,
            take_profit=1.0995, lot_size=1.0, opened_at=_T0, strategy="breakout",
        )
        result = calculate_stats([open_trade, _closed(5.0)], _curve([50_005]), 50_000.0)
        assert result.total_trades == 1

    def test_to_dict(self):
        data = calculate_stats([_closed(5.0)], _curve([50_005]), 50_000.0).to_dict()
        assert data["total_trades"] == 1
        assert "sharpe_ratio" in data
