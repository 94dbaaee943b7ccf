"""
Quote models used by the sample-data dashboard.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class StockQuote:
    """Price snapshot for one symbol."""

    symbol: str
    price: float
    change: float
    change_percent: float
    volume: int


@dataclass(frozen=True, slots=True)
class Mover:
    """Symbol paired with its daily change percent."""

    symbol: str
    change_percent: float


@dataclass(frozen=True, slots=True)
class PortfolioSummary:
    """Aggregate daily figures for a set of quotes."""

    total_value: float
    daily_change: float
    daily_change_percent: float
    top_gainer: Mover
    top_loser: Mover
