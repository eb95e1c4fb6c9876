"""Backtest run repository — persists backtest summaries to SQLite."""

from datetime import datetime, timezone

from scalpbot.backtest.models import BacktestReport
from scalpbot.repos.db import get_connection


class BacktestRepo:
    """Data access layer for the ``backtest_runs`` table.

    Args:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def insert_run(
        self,
        report: BacktestReport,
        start_date: str,
        end_date: str,
    ) -> int:
        """Persist a backtest run summary.  Returns the row id."""
        result = report.result
        conn = get_connection(self._db_path)
        try:
            cur = conn.execute(
                """
                INSERT INTO backtest_runs
                    (pair, strategy, start_date, end_date, starting_balance,
                     total_trades, winning_trades, losing_trades, win_rate,
                     profit_factor, sharpe_ratio, max_drawdown, total_pnl,
                     final_balance, net_return_pct, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    report.pair,
                    report.strategy,
                    start_date,
                    end_date,
                    report.starting_balance,
                    result.total_trades,
                    result.winning_trades,
                    result.losing_trades,
                    result.win_rate,
                    result.profit_factor,
                    result.sharpe_ratio,
                    result.max_drawdown,
                    result.total_pnl,
                    result.final_balance,
                    result.net_return_pct,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            conn.commit()
            return cur.lastrowid
        finally:
            conn.close()

    def get_runs(self, limit: int = 10) -> list[dict]:
        """Return recent backtest run summaries."""
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                "SELECT * FROM backtest_runs ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()
            return [dict(r) for r in rows]
        finally:
            conn.close()
