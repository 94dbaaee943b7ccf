"""
Persistence layer - preference stores.
"""

from portfolio_briefing.storage.base import MemoryStore, Store
from portfolio_briefing.storage.preferences import EMAIL_KEY, HISTORY_KEY, STOCKS_KEY, PreferenceStore
from portfolio_briefing.storage.sqlite import SqliteStore

__all__ = [
    "Store",
    "MemoryStore",
    "SqliteStore",
    "PreferenceStore",
    "STOCKS_KEY",
    "EMAIL_KEY",
    "HISTORY_KEY",
]
