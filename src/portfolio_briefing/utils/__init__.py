"""
Utility module.

Submodules:
    - logging_config: logging setup and the shared Rich console
    - formatting: display formatting for amounts and instants
    - console_display: terminal rendering of the dashboard
"""

from portfolio_briefing.utils.formatting import format_currency, format_percent, format_run_time, format_timestamp
from portfolio_briefing.utils.logging_config import get_console, setup_logging

__all__ = [
    "format_currency",
    "format_percent",
    "format_run_time",
    "format_timestamp",
    "get_console",
    "setup_logging",
]
