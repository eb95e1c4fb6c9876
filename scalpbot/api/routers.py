"""Internal API routers — /status, /signals/history, /trades, /backtests endpoints.

No business logic.  Reads from the injected ``StatusStore``, trade ledger
and repositories; nothing is held in module-level state.
"""

import logging
import threading
from collections import deque
from typing import Optional

from fastapi import APIRouter, Query

from scalpbot.execution.ledger import TradeLedger
from scalpbot.repos.backtest_repo import BacktestRepo
from scalpbot.repos.trade_repo import TradeRepo

logger = logging.getLogger("scalpbot.api")

SIGNAL_HISTORY_LIMIT = 50

_DEFAULT_STATUS: dict = {
    "mode": "idle",
    "running": False,
    "pair": "EUR_USD",
    "strategy": None,
    "balance": None,
    "warming_up": True,
    "samples": 0,
    "trades_today": 0,
    "total_trades": 0,
    "winning_trades": 0,
    "win_rate": 0.0,
    "total_pnl": 0.0,
    "consecutive_wins": 0,
    "consecutive_losses": 0,
    "cycle_count": 0,
    "started_at": None,
    "last_cycle_at": None,
    "last_signal_time": None,
}


class StatusStore:
    """Session status and recent signal log shared by the engine and the API.

    Written by one trading engine, read by request handlers.
    """

    def __init__(self, history_limit: int = SIGNAL_HISTORY_LIMIT) -> None:
        self._lock = threading.Lock()
        self._status: dict = dict(_DEFAULT_STATUS)
        self._signals: deque[dict] = deque(maxlen=history_limit)

    def update_bot_status(self, **fields) -> None:
        with self._lock:
            self._status.update(fields)

    def status(self) -> dict:
        with self._lock:
            return dict(self._status)

    def record_signal(self, entry: dict) -> None:
        """Append one evaluation (signal, skip, or error) to the history log."""
        with self._lock:
            self._signals.append(dict(entry))

    def signal_history(self, limit: int = 20) -> list[dict]:
        """Most recent entries, newest first."""
        with self._lock:
            recent = list(self._signals)[-limit:]
        recent.reverse()
        return recent


def create_router(
    store: StatusStore,
    ledger: Optional[TradeLedger] = None,
    trade_repo: Optional[TradeRepo] = None,
    backtest_repo: Optional[BacktestRepo] = None,
) -> APIRouter:
    """Build the read-only API router over the given collaborators."""
    router = APIRouter()

    @router.get("/status")
    async def get_status():
        """Return the current session status."""
        return store.status()

    @router.get("/signals/history")
    async def get_signal_history(
        limit: int = Query(default=20, ge=1, le=SIGNAL_HISTORY_LIMIT),
    ):
        """Return recent signal evaluations, newest first."""
        return {"signals": store.signal_history(limit)}

    @router.get("/trades")
    async def get_trades(
        limit: int = Query(default=20, ge=1, le=100),
        status: Optional[str] = Query(default=None),
    ):
        """Return session trades (from the ledger) or persisted trades."""
        if ledger is not None:
            trades = [
                t for t in reversed(ledger.snapshot())
                if status is None or t.status == status
            ]
            return {
                "trades": [t.to_dict() for t in trades[:limit]],
                "total": len(trades),
            }
        if trade_repo is not None:
            return trade_repo.get_trades(limit=limit, status_filter=status)
        return {"trades": [], "total": 0}

    @router.get("/backtests")
    async def get_backtests(limit: int = Query(default=10, ge=1, le=100)):
        """Return recent backtest run summaries."""
        if backtest_repo is None:
            return {"runs": []}
        return {"runs": backtest_repo.get_runs(limit=limit)}

    return router
