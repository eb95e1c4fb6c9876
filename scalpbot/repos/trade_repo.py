"""Trade repository — SQLite persistence for the trades table."""

from typing import Optional

from scalpbot.models.trade import Trade
from scalpbot.repos.db import get_connection


class TradeRepo:
    """Data access layer for trade records.

    Args:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    # ── Write ────────────────────────────────────────────────────────────

    def save_trade(self, trade: Trade, mode: str = "paper") -> None:
        """Insert *trade* or overwrite its previous lifecycle state."""
        conn = get_connection(self._db_path)
        try:
            conn.execute(
                """
                INSERT INTO trades
                    (id, mode, pair, direction, strategy, entry_price,
                     exit_price, stop_loss, take_profit, lot_size, pnl,
                     status, exit_reason, notes, opened_at, closed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    exit_price = excluded.exit_price,
                    pnl = excluded.pnl,
                    status = excluded.status,
                    exit_reason = excluded.exit_reason,
                    closed_at = excluded.closed_at
                """,
                (
                    trade.id, mode, trade.pair, trade.direction, trade.strategy,
                    trade.entry_price, trade.exit_price, trade.stop_loss,
                    trade.take_profit, trade.lot_size, trade.pnl, trade.status,
                    trade.exit_reason, trade.notes,
                    trade.opened_at.isoformat(),
                    trade.closed_at.isoformat() if trade.closed_at else None,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    # ── Read ─────────────────────────────────────────────────────────────

    def get_trades(
        self,
        limit: int = 20,
        status_filter: Optional[str] = None,
    ) -> dict:
        """Return recent trades, newest first.

        Returns:
            ``{"trades": [...], "total": int}``
        """
        conn = get_connection(self._db_path)
        try:
            where_clause = ""
            params: list = []
            if status_filter:
                where_clause = "WHERE status = ?"
                params.append(status_filter)

            rows = conn.execute(
                f"SELECT * FROM trades {where_clause} ORDER BY rowid DESC LIMIT ?",
                (*params, limit),
            ).fetchall()
            total = conn.execute(
                f"SELECT COUNT(*) FROM trades {where_clause}",
                params,
            ).fetchone()[0]
            return {"trades": [dict(row) for row in rows], "total": total}
        finally:
            conn.close()
