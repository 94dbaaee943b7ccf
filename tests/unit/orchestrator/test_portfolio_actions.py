import json

import pytest

from portfolio_briefing.exceptions import StorageError
from portfolio_briefing.orchestrator import MSG_EMAIL_SAVED, Orchestrator
from portfolio_briefing.storage import EMAIL_KEY, STOCKS_KEY, MemoryStore, PreferenceStore


class FailingWriteStore(MemoryStore):
    def set(self, key, value):
        raise StorageError("disk full")


class TestWatchList:
    def test_add_persists(self, orchestrator, memory_store):
        assert orchestrator.add_stock("aapl")

        assert orchestrator.state.portfolio.stocks == ["AAPL"]
        assert json.loads(memory_store.get(STOCKS_KEY)) == ["AAPL"]

    def test_add_is_idempotent(self, orchestrator, memory_store):
        orchestrator.add_stock("AAPL")
        writes_before = memory_store.snapshot()

        assert not orchestrator.add_stock(" aapl ")
        assert orchestrator.state.portfolio.stocks == ["AAPL"]
        assert memory_store.snapshot() == writes_before

    def test_blank_symbol_is_ignored(self, orchestrator, memory_store):
        assert not orchestrator.add_stock("   ")
        assert STOCKS_KEY not in memory_store.snapshot()

    def test_remove_then_readd_appends(self, orchestrator):
        for symbol in ("AAPL", "MSFT", "NVDA"):
            orchestrator.add_stock(symbol)

        orchestrator.remove_stock("AAPL")
        orchestrator.add_stock("AAPL")

        assert orchestrator.state.portfolio.stocks == ["MSFT", "NVDA", "AAPL"]

    def test_remove_absent_symbol(self, orchestrator):
        orchestrator.add_stock("AAPL")

        assert not orchestrator.remove_stock("TSLA")
        assert orchestrator.state.portfolio.stocks == ["AAPL"]

    def test_storage_failure_sets_error(self, schedule_client, agent_client):
        orchestrator = Orchestrator(
            PreferenceStore(FailingWriteStore()), schedule_client, agent_client, "agent", "schedule"
        )

        assert not orchestrator.add_stock("AAPL")
        assert orchestrator.state.error == "disk full"


class TestEmail:
    def test_save_email(self, orchestrator, memory_store):
        assert orchestrator.save_email("me@example.com")

        assert memory_store.get(EMAIL_KEY) == "me@example.com"
        assert orchestrator.state.notice == MSG_EMAIL_SAVED
        assert orchestrator.state.error == ""

    def test_save_clears_previous_error(self, orchestrator):
        orchestrator.state.error = "Something went wrong"

        orchestrator.save_email("me@example.com")

        assert orchestrator.state.error == ""
        assert orchestrator.state.notice == MSG_EMAIL_SAVED


class TestStartup:
    def test_load_restores_preferences(self, memory_store, orchestrator):
        memory_store.set(STOCKS_KEY, json.dumps(["aapl", "MSFT"]))
        memory_store.set(EMAIL_KEY, "me@example.com")

        orchestrator.load()

        assert orchestrator.state.portfolio.stocks == ["AAPL", "MSFT"]
        assert orchestrator.state.portfolio.email == "me@example.com"
        assert orchestrator.state.history == []

    @pytest.mark.asyncio
    async def test_initialize_fetches_schedule_and_logs(self, orchestrator, schedule_client, sample_logs):
        await orchestrator.initialize()

        schedule_client.get_schedule.assert_awaited_once_with("schedule-test")
        schedule_client.get_schedule_logs.assert_awaited_once_with("schedule-test", limit=10)
        assert orchestrator.state.schedule.is_active
        assert orchestrator.state.logs == sample_logs
        assert orchestrator.state.error == ""
