"""
Bundled sample data for the demo dashboard.

Sample mode only changes what the dashboard displays; it never touches the
persisted watch-list, email or history.
"""

from datetime import UTC, datetime, timedelta

from portfolio_briefing.models import AnalysisHistoryEntry, Mover, PortfolioSummary, StockQuote

SAMPLE_SHARES_PER_POSITION = 10

SAMPLE_QUOTES: tuple[StockQuote, ...] = (
    StockQuote(symbol="AAPL", price=185.50, change=2.35, change_percent=1.28, volume=52_340_000),
    StockQuote(symbol="GOOGL", price=142.80, change=-1.20, change_percent=-0.83, volume=28_450_000),
    StockQuote(symbol="MSFT", price=378.90, change=4.50, change_percent=1.20, volume=31_280_000),
    StockQuote(symbol="TSLA", price=248.30, change=-3.70, change_percent=-1.47, volume=98_760_000),
    StockQuote(symbol="NVDA", price=722.50, change=8.90, change_percent=1.25, volume=42_150_000),
)


def sample_quotes() -> list[StockQuote]:
    return list(SAMPLE_QUOTES)


def summarize_quotes(quotes: list[StockQuote], shares: int = SAMPLE_SHARES_PER_POSITION) -> PortfolioSummary:
    """
    Aggregate quotes assuming an equal share count in every position.

    Raises:
        ValueError: if ``quotes`` is empty
    """
    if not quotes:
        raise ValueError("Cannot summarize an empty quote list")

    total_value = sum(q.price * shares for q in quotes)
    daily_change = sum(q.change * shares for q in quotes)
    previous_value = total_value - daily_change
    daily_change_percent = daily_change / previous_value * 100 if previous_value else 0.0

    ranked = sorted(quotes, key=lambda q: q.change_percent, reverse=True)
    return PortfolioSummary(
        total_value=total_value,
        daily_change=daily_change,
        daily_change_percent=daily_change_percent,
        top_gainer=Mover(ranked[0].symbol, ranked[0].change_percent),
        top_loser=Mover(ranked[-1].symbol, ranked[-1].change_percent),
    )


def sample_history(now: datetime | None = None) -> list[AnalysisHistoryEntry]:
    """Two past briefings, one and two days before ``now``, newest first."""
    now = now or datetime.now(UTC)
    symbols = tuple(q.symbol for q in SAMPLE_QUOTES)
    return [
        AnalysisHistoryEntry(
            id="1",
            timestamp=now - timedelta(days=1),
            stocks=symbols,
            summary="Strong market performance today with tech sector leading gains. Portfolio up 1.2% overall.",
            key_insights=(
                "NVDA showing exceptional strength on AI demand",
                "AAPL breaking resistance at $185",
                "Consider taking profits on TSLA",
            ),
            portfolio_value=89750.50,
        ),
        AnalysisHistoryEntry(
            id="2",
            timestamp=now - timedelta(days=2),
            stocks=symbols,
            summary="Mixed signals across portfolio. Tech stocks consolidating after recent rally.",
            key_insights=(
                "Market volatility increasing",
                "MSFT earnings report upcoming",
                "Maintain current positions",
            ),
            portfolio_value=88680.25,
        ),
    ]
