"""Tests for scalpbot.models.trade — lifecycle and derived values."""

from datetime import datetime, timedelta, timezone

import pytest

from scalpbot.models.trade import Trade


_OPENED = datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)


def _make_trade(**overrides) -> Trade:
    defaults = dict(
        pair="EUR_USD",
        direction="buy",
        entry_price=1.1000,
        stop_loss=1.0997,
        take_profit=1.1005,
        lot_size=1.0,
        opened_at=_OPENED,
        strategy="ema_crossover",
    )
    defaults.update(overrides)
    return Trade(**defaults)


class TestLifecycle:
    def test_open_trade_has_no_pnl(self):
        trade = _make_trade()
        assert trade.status == "open"
        assert trade.pnl is None
        assert trade.is_active
        assert not trade.is_closed

    def test_close_sets_exit_fields(self):
        closed = _make_trade().close(1.1005, _OPENED + timedelta(minutes=3), "TP hit")
        assert closed.status == "closed"
        assert closed.pnl == pytest.approx(50.0)
        assert closed.exit_price == 1.1005
        assert closed.exit_reason == "TP hit"
        assert closed.duration_seconds == 180.0

    def test_close_returns_new_instance(self):
        trade = _make_trade()
        closed = trade.close(1.1, _OPENED)
        assert trade.status == "open"
        assert closed.id == trade.id

    def test_closed_trade_never_reopens(self):
        closed = _make_trade().close(1.1, _OPENED)
        with pytest.raises(ValueError):
            closed.close(1.2, _OPENED)
        with pytest.raises(ValueError):
            closed.cancel()

    def test_pending_can_open_or_cancel(self):
        pending = _make_trade(status="pending")
        assert pending.mark_open().status == "open"
        cancelled = pending.cancel("user")
        assert cancelled.status == "cancelled"
        assert cancelled.exit_reason == "user"
        assert cancelled.pnl is None

    def test_pnl_without_closed_status_rejected(self):
        with pytest.raises(ValueError, match="pnl"):
            _make_trade(pnl=10.0)

    def test_closed_without_pnl_rejected(self):
        with pytest.raises(ValueError):
            _make_trade(status="closed", exit_price=1.1, closed_at=_OPENED)

    def test_bad_direction_rejected(self):
        with pytest.raises(ValueError, match="direction"):
            _make_trade(direction="long")


class TestDerivedValues:
    def test_pnl_pips(self):
        closed = _make_trade(direction="sell").close(1.0995, _OPENED)
        assert closed.pnl_pips() == pytest.approx(5.0)
        assert _make_trade().pnl_pips() is None

    def test_pnl_percentage(self):
        closed = _make_trade().close(1.1011, _OPENED)
        # 110 profit on 110 000 notional
        assert closed.pnl_percentage == pytest.approx(0.1)

    def test_to_dict(self):
        data = _make_trade().to_dict()
        assert data["pair"] == "EUR_USD"
        assert data["opened_at"] == _OPENED.isoformat()
        assert data["closed_at"] is None
        assert data["status"] == "open"
