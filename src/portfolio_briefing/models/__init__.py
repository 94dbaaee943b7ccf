"""
Data models for portfolio briefing.
"""

from portfolio_briefing.models.portfolio import AnalysisHistoryEntry, PortfolioState, normalize_symbol
from portfolio_briefing.models.quotes import Mover, PortfolioSummary, StockQuote
from portfolio_briefing.models.results import (
    DEFAULT_SUMMARY,
    ActionResponse,
    AgentResponse,
    LogsResponse,
    ScheduleResponse,
)
from portfolio_briefing.models.schedule import ExecutionLogEntry, ScheduleRecord

__all__ = [
    "AnalysisHistoryEntry",
    "PortfolioState",
    "normalize_symbol",
    "StockQuote",
    "Mover",
    "PortfolioSummary",
    "ScheduleRecord",
    "ExecutionLogEntry",
    "ActionResponse",
    "AgentResponse",
    "LogsResponse",
    "ScheduleResponse",
    "DEFAULT_SUMMARY",
]
