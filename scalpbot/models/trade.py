"""Trade record with an enforced lifecycle.

``pnl``, ``exit_price`` and ``closed_at`` are set if and only if the trade
is closed.  Transitions return new instances; a closed or cancelled trade
is never reopened.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Literal, Optional

from scalpbot.risk.position_sizer import calculate_pnl
from scalpbot.strategy.models import DEFAULT_PIP_VALUE, STANDARD_LOT_UNITS


TradeStatus = Literal["pending", "open", "closed", "cancelled"]

_ACTIVE_STATUSES = ("pending", "open")


@dataclass(frozen=True)
class Trade:
    """A single simulated trade."""

    pair: str
    direction: str  # "buy" or "sell"
    entry_price: float
    stop_loss: float
    take_profit: float
    lot_size: float
    opened_at: datetime
    strategy: str
    status: TradeStatus = "open"
    exit_price: Optional[float] = None
    closed_at: Optional[datetime] = None
    pnl: Optional[float] = None
    exit_reason: Optional[str] = None
    notes: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        if self.direction not in ("buy", "sell"):
            raise ValueError(f"direction must be 'buy' or 'sell', got '{self.direction}'")
        closed = self.status == "closed"
        for name in ("pnl", "exit_price", "closed_at"):
            if (getattr(self, name) is not None) != closed:
                raise ValueError(
                    f"Trade {self.id}: '{name}' must be set if and only if "
                    f"status is 'closed' (status={self.status})"
                )

    # ── Transitions ──────────────────────────────────────────────────────

    def close(
        self,
        exit_price: float,
        closed_at: datetime,
        exit_reason: str = "",
    ) -> "Trade":
        """Return the closed version of this trade with realised P&L."""
        if self.status not in _ACTIVE_STATUSES:
            raise ValueError(f"Trade {self.id} cannot be closed from status '{self.status}'")
        return replace(
            self,
            status="closed",
            exit_price=exit_price,
            closed_at=closed_at,
            pnl=calculate_pnl(self.direction, self.entry_price, exit_price, self.lot_size),
            exit_reason=exit_reason or None,
        )

    def cancel(self, reason: str = "cancelled") -> "Trade":
        """Return the cancelled version of a pending/open trade."""
        if self.status not in _ACTIVE_STATUSES:
            raise ValueError(f"Trade {self.id} cannot be cancelled from status '{self.status}'")
        return replace(self, status="cancelled", exit_reason=reason)

    def mark_open(self) -> "Trade":
        if self.status != "pending":
            raise ValueError(f"Trade {self.id} is '{self.status}', not 'pending'")
        return replace(self, status="open")

    # ── Derived values ───────────────────────────────────────────────────

    @property
    def is_closed(self) -> bool:
        return self.status == "closed"

    @property
    def is_active(self) -> bool:
        return self.status in _ACTIVE_STATUSES

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.closed_at is None:
            return None
        return (self.closed_at - self.opened_at).total_seconds()

    def pnl_pips(self, pip_value: float = DEFAULT_PIP_VALUE) -> Optional[float]:
        if self.exit_price is None:
            return None
        move = self.exit_price - self.entry_price
        if self.direction == "sell":
            move = -move
        return move / pip_value

    @property
    def pnl_percentage(self) -> Optional[float]:
        """P&L as a percentage of the position's notional value."""
        if self.pnl is None:
            return None
        notional = self.entry_price * self.lot_size * STANDARD_LOT_UNITS
        if notional == 0:
            return 0.0
        return self.pnl / notional * 100.0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pair": self.pair,
            "direction": self.direction,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "stop_loss": self.stop_loss,
            "take_profit": self.take_profit,
            "lot_size": self.lot_size,
            "opened_at": self.opened_at.isoformat(),
            "closed_at": self.closed_at.isoformat() if self.closed_at else None,
            "pnl": self.pnl,
            "strategy": self.strategy,
            "status": self.status,
            "exit_reason": self.exit_reason,
        }
