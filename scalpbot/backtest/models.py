"""Backtest result models."""

from dataclasses import asdict, dataclass, field

from scalpbot.models.trade import Trade
from scalpbot.strategy.models import EquityPoint


@dataclass(frozen=True)
class BacktestResult:
    """Summary statistics of one completed backtest run."""

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    total_pnl: float = 0.0
    win_rate: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    profit_factor: float = 0.0
    final_balance: float = 0.0
    net_return_pct: float = 0.0
    max_equity: float = 0.0
    expectancy: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0
    recovery_factor: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BacktestReport:
    """Everything a backtest run produces: summary, trade ledger, equity curve."""

    pair: str
    strategy: str
    starting_balance: float
    result: BacktestResult
    trades: list[Trade] = field(default_factory=list)
    equity_curve: list[EquityPoint] = field(default_factory=list)
    skipped_candles: int = 0
