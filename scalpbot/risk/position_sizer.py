"""Position sizing and P&L — pure math, no I/O.

Lot sizes are expressed in standard lots (1.0 = 100,000 units of the base
currency).
"""

from scalpbot.strategy.models import STANDARD_LOT_UNITS


def calculate_lot_size(balance: float, risk_pct: float) -> float:
    """Calculate position size in standard lots.

    Formula::

        lot_size = (balance × risk_pct / 100) / 100_000

    Args:
        balance: Current account balance (e.g. 50_000.0).
        risk_pct: Percentage of balance to risk per trade (e.g. 1.0 for 1 %).

    Returns:
        Position size in standard lots (always positive).

    Raises:
        ValueError: If any input is non-positive.
    """
    if balance <= 0:
        raise ValueError(f"balance must be positive, got {balance}")
    if risk_pct <= 0:
        raise ValueError(f"risk_pct must be positive, got {risk_pct}")

    return (balance * risk_pct / 100.0) / STANDARD_LOT_UNITS


def calculate_pnl(
    direction: str,
    entry_price: float,
    exit_price: float,
    lot_size: float,
) -> float:
    """Realised P&L in account currency for a trade of *lot_size* lots.

    Raises ``ValueError`` for an unknown *direction*.
    """
    if direction == "buy":
        move = exit_price - entry_price
    elif direction == "sell":
        move = entry_price - exit_price
    else:
        raise ValueError(f"direction must be 'buy' or 'sell', got '{direction}'")
    return move * lot_size * STANDARD_LOT_UNITS
