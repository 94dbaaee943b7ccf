"""
Typed adapter over the preference store.

Three independent slots are persisted: the watch-list (JSON list of symbols),
the delivery email (plain string) and the analysis history (JSON list of
entries, newest first). Reads never fail: absent keys, unreadable backends and
malformed values all fall back to defaults.
"""

import json
import logging
from typing import Any

from portfolio_briefing.exceptions import StorageError, handle_errors
from portfolio_briefing.models import AnalysisHistoryEntry, PortfolioState, normalize_symbol
from portfolio_briefing.storage.base import Store

logger = logging.getLogger(__name__)

STOCKS_KEY = "portfolio_stocks"
EMAIL_KEY = "portfolio_email"
HISTORY_KEY = "analysis_history"


@handle_errors("Ignoring malformed stored watch-list", default_return=[], log_level="warning")
def decode_stocks(raw: str) -> list[str]:
    data = json.loads(raw)
    if not isinstance(data, list):
        raise TypeError(f"expected a list, got {type(data).__name__}")

    stocks: list[str] = []
    for item in data:
        if not isinstance(item, str):
            continue
        symbol = normalize_symbol(item)
        if symbol and symbol not in stocks:
            stocks.append(symbol)
    return stocks


@handle_errors("Ignoring malformed stored history", default_return=[], log_level="warning")
def decode_history(raw: str) -> list[AnalysisHistoryEntry]:
    data = json.loads(raw)
    if not isinstance(data, list):
        raise TypeError(f"expected a list, got {type(data).__name__}")

    entries: list[AnalysisHistoryEntry] = []
    seen_ids: set[str] = set()
    for index, item in enumerate(data):
        entry = _decode_entry(item, index)
        if entry is None or entry.id in seen_ids:
            continue
        seen_ids.add(entry.id)
        entries.append(entry)
    return entries


def _decode_entry(item: Any, index: int) -> AnalysisHistoryEntry | None:
    if not isinstance(item, dict):
        logger.warning(f"Skipping history item {index}: not an object")
        return None
    try:
        return AnalysisHistoryEntry.from_dict(item)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Skipping history item {index}: {e}")
        return None


def encode_history(history: list[AnalysisHistoryEntry]) -> str:
    return json.dumps([entry.to_dict() for entry in history], ensure_ascii=False)


class PreferenceStore:
    """Reads and writes the watch-list, email and history slots of a Store."""

    def __init__(self, store: Store):
        self._store = store

    def _read(self, key: str) -> str | None:
        try:
            return self._store.get(key)
        except StorageError as e:
            logger.error(f"Falling back to default for '{key}': {e}")
            return None

    def load_stocks(self) -> list[str]:
        raw = self._read(STOCKS_KEY)
        return decode_stocks(raw) if raw else []

    def load_email(self) -> str:
        return self._read(EMAIL_KEY) or ""

    def load_history(self) -> list[AnalysisHistoryEntry]:
        raw = self._read(HISTORY_KEY)
        return decode_history(raw) if raw else []

    def load_portfolio(self) -> PortfolioState:
        return PortfolioState(stocks=self.load_stocks(), email=self.load_email())

    def save_stocks(self, stocks: list[str]) -> None:
        self._store.set(STOCKS_KEY, json.dumps(list(stocks)))

    def save_email(self, email: str) -> None:
        self._store.set(EMAIL_KEY, email)

    def save_history(self, history: list[AnalysisHistoryEntry]) -> None:
        self._store.set(HISTORY_KEY, encode_history(history))
