"""Tests for scalpbot.risk — lot sizing, P&L and SL/TP resolution."""

import pytest

from scalpbot.risk.position_sizer import calculate_lot_size, calculate_pnl
from scalpbot.risk.sl_tp import RiskLevels, calculate_levels, resolve_exit
from scalpbot.strategy.models import normalize_pair, pip_size


# ── Position sizing ──────────────────────────────────────────────────────


class TestCalculateLotSize:
    def test_default_account(self):
        # 50 000 × 1 % / 100 000
        assert calculate_lot_size(50_000.0, 1.0) == pytest.approx(0.005)

    def test_scales_with_risk(self):
        assert calculate_lot_size(100_000.0, 2.5) == pytest.approx(0.025)

    @pytest.mark.parametrize("balance,risk", [(0.0, 1.0), (-10.0, 1.0), (50_000.0, 0.0)])
    def test_non_positive_inputs_raise(self, balance, risk):
        with pytest.raises(ValueError):
            calculate_lot_size(balance, risk)


class TestCalculatePnl:
    def test_buy_profit(self):
        assert calculate_pnl("buy", 1.1000, 1.1005, 0.005) == pytest.approx(0.25)

    def test_sell_profit(self):
        assert calculate_pnl("sell", 1.1000, 1.0990, 1.0) == pytest.approx(100.0)

    def test_buy_loss(self):
        assert calculate_pnl("buy", 1.1000, 1.0997, 1.0) == pytest.approx(-30.0)

    def test_bad_direction(self):
        with pytest.raises(ValueError, match="direction"):
            calculate_pnl("long", 1.1, 1.2, 1.0)


# ── Levels ───────────────────────────────────────────────────────────────


class TestCalculateLevels:
    def test_buy_levels(self):
        levels = calculate_levels(1.1000, "buy", 5, 3)
        assert levels.take_profit == pytest.approx(1.1005)
        assert levels.stop_loss == pytest.approx(1.0997)

    def test_sell_levels(self):
        levels = calculate_levels(1.1000, "sell", 5, 3)
        assert levels.take_profit == pytest.approx(1.0995)
        assert levels.stop_loss == pytest.approx(1.1003)

    def test_jpy_pip(self):
        levels = calculate_levels(150.00, "buy", 5, 3, pip_value=pip_size("USDJPY"))
        assert levels.take_profit == pytest.approx(150.05)

    def test_invalid_inputs(self):
        with pytest.raises(ValueError):
            calculate_levels(1.1, "buy", 0, 3)
        with pytest.raises(ValueError):
            calculate_levels(1.1, "flat", 5, 3)


class TestResolveExit:
    _BUY = RiskLevels(stop_loss=1.0997, take_profit=1.1005)
    _SELL = RiskLevels(stop_loss=1.1003, take_profit=1.0995)

    def test_buy_take_profit(self):
        assert resolve_exit("buy", self._BUY, high=1.1006, low=1.0999) == (1.1005, "TP hit")

    def test_buy_stop_loss(self):
        assert resolve_exit("buy", self._BUY, high=1.1001, low=1.0996) == (1.0997, "SL hit")

    def test_both_hit_stop_loss_wins(self):
        assert resolve_exit("buy", self._BUY, high=1.1010, low=1.0990) == (1.0997, "SL hit")
        assert resolve_exit("sell", self._SELL, high=1.1010, low=1.0990) == (1.1003, "SL hit")

    def test_sell_take_profit(self):
        assert resolve_exit("sell", self._SELL, high=1.1001, low=1.0994) == (1.0995, "TP hit")

    def test_neither_hit(self):
        assert resolve_exit("buy", self._BUY, high=1.1004, low=1.0998) is None


# ── Pips ─────────────────────────────────────────────────────────────────


class TestPips:
    def test_symbol_styles(self):
        assert normalize_pair("eurusd") == "EUR_USD"
        assert normalize_pair("EUR/USD") == "EUR_USD"
        assert normalize_pair("EUR_USD") == "EUR_USD"

    def test_pip_sizes(self):
        assert pip_size("EUR_USD") == 0.0001
        assert pip_size("GBPJPY") == 0.01
        assert pip_size("XAU_USD") == 0.0001
