"""Strategy data models — typed representations for prices, candles and signals."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal


Direction = Literal["buy", "sell"]
IndicatorAction = Literal["buy", "sell", "hold"]


@dataclass(frozen=True)
class PriceSample:
    """A single bid/ask tick from the price source."""

    symbol: str
    bid: float
    ask: float
    timestamp: datetime

    @property
    def mid(self) -> float:
        return (self.bid + self.ask) / 2.0

    @property
    def spread(self) -> float:
        return self.ask - self.bid


@dataclass(frozen=True)
class Candle:
    """A single fixed-duration OHLCV bar."""

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: int = 0


@dataclass(frozen=True)
class TradingSignal:
    """A directional signal produced by one strategy evaluation."""

    pair: str
    action: Direction
    confidence: float  # 0.0 - 1.0
    reason: str
    timestamp: datetime

    @property
    def description(self) -> str:
        return (
            f"{self.action.upper()} {self.pair} - "
            f"{self.confidence * 100:.1f}% confidence"
        )


@dataclass(frozen=True)
class EquityPoint:
    """Account balance after one processed candle."""

    timestamp: datetime
    equity_value: float


# ── Instrument metadata ──────────────────────────────────────────────────

STANDARD_LOT_UNITS: float = 100_000.0
DEFAULT_PIP_VALUE: float = 0.0001

INSTRUMENT_PIP_VALUES: dict[str, float] = {
    "EUR_USD": 0.0001,
    "GBP_USD": 0.0001,
    "USD_JPY": 0.01,
    "EUR_JPY": 0.01,
    "GBP_JPY": 0.01,
    "USD_CHF": 0.0001,
    "AUD_USD": 0.0001,
    "NZD_USD": 0.0001,
    "USD_CAD": 0.0001,
    "EUR_GBP": 0.0001,
}


def normalize_pair(pair: str) -> str:
    """Return *pair* in ``BASE_QUOTE`` form (``"EURUSD"`` → ``"EUR_USD"``)."""
    symbol = pair.strip().upper().replace("/", "_")
    if "_" not in symbol and len(symbol) == 6:
        symbol = f"{symbol[:3]}_{symbol[3:]}"
    return symbol


def pip_size(pair: str) -> float:
    """Price increment of one pip for *pair* (``0.0001`` when unknown)."""
    return INSTRUMENT_PIP_VALUES.get(normalize_pair(pair), DEFAULT_PIP_VALUE)
