import json
from datetime import UTC, datetime

import pytest

from portfolio_briefing.exceptions import StorageError
from portfolio_briefing.models import AnalysisHistoryEntry
from portfolio_briefing.storage import EMAIL_KEY, HISTORY_KEY, STOCKS_KEY, MemoryStore, PreferenceStore


def _entry(entry_id: str, day: int = 20) -> AnalysisHistoryEntry:
    return AnalysisHistoryEntry(
        id=entry_id,
        timestamp=datetime(2026, 10, day, 8, 30, tzinfo=UTC),
        stocks=("AAPL", "MSFT"),
        summary=f"Briefing {entry_id}",
        key_insights=("Tech leads",),
    )


class BrokenStore:
    """Store whose backend is unavailable."""

    def get(self, key):
        raise StorageError("database is locked")

    def set(self, key, value):
        raise StorageError("database is locked")


class TestDefaults:
    def test_empty_store(self, preferences):
        portfolio = preferences.load_portfolio()

        assert portfolio.stocks == []
        assert portfolio.email == ""
        assert preferences.load_history() == []

    def test_unreadable_backend_falls_back(self):
        preferences = PreferenceStore(BrokenStore())

        assert preferences.load_stocks() == []
        assert preferences.load_email() == ""
        assert preferences.load_history() == []

    def test_unwritable_backend_raises(self):
        with pytest.raises(StorageError):
            PreferenceStore(BrokenStore()).save_stocks(["AAPL"])


class TestStocks:
    def test_saved_as_json_list(self, preferences, memory_store):
        preferences.save_stocks(["AAPL", "NVDA"])

        assert json.loads(memory_store.get(STOCKS_KEY)) == ["AAPL", "NVDA"]
        assert preferences.load_stocks() == ["AAPL", "NVDA"]

    def test_loaded_symbols_are_normalized_and_deduplicated(self):
        store = MemoryStore({STOCKS_KEY: json.dumps([" aapl", "MSFT", "AAPL", "", 42, "msft "])})

        assert PreferenceStore(store).load_stocks() == ["AAPL", "MSFT"]

    @pytest.mark.parametrize("raw", ["not json", '{"AAPL": 1}', '"AAPL"', "null"])
    def test_malformed_value_gives_empty_list(self, raw):
        assert PreferenceStore(MemoryStore({STOCKS_KEY: raw})).load_stocks() == []


class TestEmail:
    def test_stored_verbatim(self, preferences, memory_store):
        preferences.save_email("  Me@Example.com ")

        assert memory_store.get(EMAIL_KEY) == "  Me@Example.com "
        assert preferences.load_email() == "  Me@Example.com "


class TestHistory:
    def test_history_survives_reload(self, preferences, memory_store):
        history = [_entry("1761035400000", 21), _entry("1760949000000", 20)]
        preferences.save_history(history)

        reloaded = PreferenceStore(memory_store).load_history()

        assert reloaded == history

    def test_persisted_layout(self, preferences, memory_store):
        preferences.save_history([_entry("7")])

        (item,) = json.loads(memory_store.get(HISTORY_KEY))
        assert item == {
            "id": "7",
            "timestamp": "2026-10-20T08:30:00Z",
            "stocks": ["AAPL", "MSFT"],
            "summary": "Briefing 7",
            "portfolioValue": 0.0,
            "keyInsights": ["Tech leads"],
        }

    def test_bad_items_are_skipped(self):
        raw = json.dumps(
            [
                {"id": "3", "timestamp": "2026-10-20T08:30:00Z", "stocks": ["AAPL"], "summary": "ok"},
                {"id": "2", "timestamp": "yesterday", "stocks": ["AAPL"], "summary": "bad date"},
                "not an object",
                {"timestamp": "2026-10-18T08:30:00Z", "stocks": [], "summary": "no id"},
                {"id": "1", "timestamp": "2026-10-17T08:30:00", "stocks": "AAPL", "summary": "bad stocks"},
                {"id": 0, "timestamp": "2026-10-16T08:30:00", "stocks": [], "key_insights": ["snake"]},
            ]
        )

        history = PreferenceStore(MemoryStore({HISTORY_KEY: raw})).load_history()

        assert [e.id for e in history] == ["3", "0"]
        assert history[1].key_insights == ("snake",)
        assert history[1].timestamp.tzinfo is not None

    def test_duplicate_ids_keep_first(self):
        raw = json.dumps([_entry("5").to_dict(), {**_entry("5").to_dict(), "summary": "dupe"}])

        history = PreferenceStore(MemoryStore({HISTORY_KEY: raw})).load_history()

        assert len(history) == 1
        assert history[0].summary == "Briefing 5"

    @pytest.mark.parametrize("raw", ["[", "{}", "42"])
    def test_malformed_value_gives_empty_history(self, raw):
        assert PreferenceStore(MemoryStore({HISTORY_KEY: raw})).load_history() == []

    def test_one_bad_slot_does_not_affect_others(self):
        store = MemoryStore({STOCKS_KEY: "{{{", EMAIL_KEY: "me@example.com", HISTORY_KEY: "[]"})

        portfolio = PreferenceStore(store).load_portfolio()

        assert portfolio.stocks == []
        assert portfolio.email == "me@example.com"
