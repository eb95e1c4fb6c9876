"""CLI output — backtest summaries and live status printed to the console."""

from scalpbot.backtest.models import BacktestReport
from scalpbot.strategy.registry import STRATEGY_DISPLAY_NAMES


def format_backtest_report(report: BacktestReport) -> str:
    """Render a backtest summary as a fixed-width text block."""
    r = report.result
    strategy = STRATEGY_DISPLAY_NAMES.get(report.strategy, report.strategy)
    lines = [
        "──────────────── ScalpBot Backtest ────────────────",
        f"  Pair:             {report.pair}",
        f"  Strategy:         {strategy}",
        f"  Candles:          {len(report.equity_curve)}"
        + (f" ({report.skipped_candles} skipped)" if report.skipped_candles else ""),
        f"  Starting Balance: ${report.starting_balance:,.2f}",
        f"  Final Balance:    ${r.final_balance:,.2f}",
        f"  Net Return:       {r.net_return_pct:+.2f}%",
        f"  Total P&L:        ${r.total_pnl:,.2f}",
        f"  Trades:           {r.total_trades} ({r.winning_trades}W / {r.losing_trades}L)",
        f"  Win Rate:         {r.win_rate * 100:.1f}%",
        f"  Profit Factor:    {r.profit_factor:.2f}",
        f"  Sharpe Ratio:     {r.sharpe_ratio:.2f}",
        f"  Max Drawdown:     ${r.max_drawdown:,.2f}",
        f"  Max Equity:       ${r.max_equity:,.2f}",
        f"  Expectancy:       ${r.expectancy:,.2f}",
        f"  Largest Win:      ${r.largest_win:,.2f}",
        f"  Largest Loss:     ${r.largest_loss:,.2f}",
        f"  Streaks:          {r.max_consecutive_wins} wins / {r.max_consecutive_losses} losses",
        "──────────────────────────────────────────────────",
    ]
    return "\n".join(lines)


def print_status(status: dict) -> str:
    """Format and print the live session status.

    Args:
        status: Dict as returned by ``StatusStore.status()``.

    Returns:
        The formatted string (also printed to stdout).
    """
    balance = status.get("balance")
    balance_str = f"${balance:,.2f}" if balance is not None else "N/A"
    warming = "yes" if status.get("warming_up", True) else "no"

    lines = [
        "──────────────── ScalpBot Status ────────────────",
        f"  Mode:            {status.get('mode', 'unknown')}",
        f"  Running:         {status.get('running', False)}",
        f"  Pair:            {status.get('pair', 'N/A')}",
        f"  Strategy:        {status.get('strategy') or 'N/A'}",
        f"  Balance:         {balance_str}",
        f"  Warming Up:      {warming} ({status.get('samples', 0)} samples)",
        f"  Trades Today:    {status.get('trades_today', 0)}",
        f"  Total Trades:    {status.get('total_trades', 0)}",
        f"  Win Rate:        {status.get('win_rate', 0.0) * 100:.1f}%",
        f"  Total P&L:       ${status.get('total_pnl', 0.0):,.2f}",
        "──────────────────────────────────────────────────",
    ]
    output = "\n".join(lines)
    print(output)
    return output
