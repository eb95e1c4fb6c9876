"""Thread-safe trade ledger shared by the paper executor, the live engine and the API."""

import logging
import threading
from typing import Callable, Optional

from scalpbot.models.trade import Trade

logger = logging.getLogger("scalpbot.ledger")

TradeListener = Callable[[Trade], None]


class TradeLedger:
    """In-memory record of every trade in a session, keyed by trade id.

    All mutation happens under a lock; readers get immutable snapshots.
    Listeners are invoked (outside the lock) after every append/replace.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._trades: dict[str, Trade] = {}
        self._listeners: list[TradeListener] = []

    def add_listener(self, listener: TradeListener) -> None:
        self._listeners.append(listener)

    # ── Write ────────────────────────────────────────────────────────────

    def append(self, trade: Trade) -> None:
        """Record a new trade.  Raises ``ValueError`` on a duplicate id."""
        with self._lock:
            if trade.id in self._trades:
                raise ValueError(f"Trade {trade.id} already recorded")
            self._trades[trade.id] = trade
        self._notify(trade)

    def replace(self, trade: Trade) -> None:
        """Store the next lifecycle state of an existing trade.

        Raises:
            KeyError: If the trade id is unknown.
            ValueError: If the stored trade is already closed or cancelled.
        """
        with self._lock:
            current = self._trades.get(trade.id)
            if current is None:
                raise KeyError(f"Unknown trade {trade.id}")
            if not current.is_active:
                raise ValueError(
                    f"Trade {trade.id} is already '{current.status}'"
                )
            self._trades[trade.id] = trade
        self._notify(trade)

    # ── Read ─────────────────────────────────────────────────────────────

    def get(self, trade_id: str) -> Optional[Trade]:
        with self._lock:
            return self._trades.get(trade_id)

    def snapshot(self) -> list[Trade]:
        """All trades in insertion order."""
        with self._lock:
            return list(self._trades.values())

    def active_trades(self) -> list[Trade]:
        return [t for t in self.snapshot() if t.is_active]

    def closed_trades(self) -> list[Trade]:
        return [t for t in self.snapshot() if t.is_closed]

    def __len__(self) -> int:
        with self._lock:
            return len(self._trades)

    def _notify(self, trade: Trade) -> None:
        for listener in self._listeners:
            try:
                listener(trade)
            except Exception:
                logger.exception("Trade listener failed for %s", trade.id)
