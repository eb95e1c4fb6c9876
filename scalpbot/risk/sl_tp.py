"""Stop-loss / take-profit levels and exit resolution — pure functions, no I/O.

Levels are fixed pip distances from the entry price.  Exit resolution
tests a price range (a candle's high/low, or the extremes seen by the
paper executor) against both levels.
"""

from dataclasses import dataclass
from typing import Optional

from scalpbot.strategy.models import DEFAULT_PIP_VALUE


@dataclass(frozen=True)
class RiskLevels:
    """Protective levels for one trade."""

    stop_loss: float
    take_profit: float


def calculate_levels(
    entry_price: float,
    direction: str,
    profit_target_pips: float,
    stop_loss_pips: float,
    pip_value: float = DEFAULT_PIP_VALUE,
) -> RiskLevels:
    """Return the SL/TP prices *stop_loss_pips* / *profit_target_pips* from entry.

    Buy:  SL below entry, TP above.
    Sell: SL above entry, TP below.

    Raises ``ValueError`` for an unknown direction or non-positive distances.
    """
    if profit_target_pips <= 0:
        raise ValueError(f"profit_target_pips must be positive, got {profit_target_pips}")
    if stop_loss_pips <= 0:
        raise ValueError(f"stop_loss_pips must be positive, got {stop_loss_pips}")

    target = profit_target_pips * pip_value
    stop = stop_loss_pips * pip_value

    if direction == "buy":
        return RiskLevels(stop_loss=entry_price - stop, take_profit=entry_price + target)
    if direction == "sell":
        return RiskLevels(stop_loss=entry_price + stop, take_profit=entry_price - target)
    raise ValueError(f"direction must be 'buy' or 'sell', got '{direction}'")


def resolve_exit(
    direction: str,
    levels: RiskLevels,
    high: float,
    low: float,
) -> Optional[tuple[float, str]]:
    """Check whether the range ``[low, high]`` reaches SL or TP.

    Returns ``(exit_price, reason)`` or ``None`` when neither level is
    reached.  When both fall inside the range the stop-loss wins, since the
    order of the two touches is unknown.
    """
    if direction == "buy":
        sl_hit = low <= levels.stop_loss
        tp_hit = high >= levels.take_profit
    elif direction == "sell":
        sl_hit = high >= levels.stop_loss
        tp_hit = low <= levels.take_profit
    else:
        raise ValueError(f"direction must be 'buy' or 'sell', got '{direction}'")

    if sl_hit:
        return levels.stop_loss, "SL hit"
    if tp_hit:
        return levels.take_profit, "TP hit"
    return None
