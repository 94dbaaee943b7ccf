import asyncio
import json

import pytest

from portfolio_briefing.models import AgentResponse
from portfolio_briefing.orchestrator import (
    MSG_ANALYSIS_DONE,
    MSG_ANALYSIS_FAILED,
    MSG_NO_EMAIL,
    MSG_NO_STOCKS,
    compose_instruction,
)
from portfolio_briefing.storage import HISTORY_KEY


@pytest.fixture
def ready(orchestrator):
    """Orchestrator with a watch-list and delivery address."""
    orchestrator.add_stock("AAPL")
    orchestrator.add_stock("MSFT")
    orchestrator.save_email("me@example.com")
    orchestrator.clear_messages()
    return orchestrator


def test_compose_instruction():
    assert (
        compose_instruction(["AAPL", "MSFT"], "me@example.com")
        == "Analyze portfolio: AAPL,MSFT and send email to me@example.com"
    )


@pytest.mark.asyncio
async def test_successful_run_prepends_history(ready, agent_client, memory_store, fixed_now):
    assert await ready.run_analysis_now()

    agent_client.call_agent.assert_awaited_once_with(
        "Analyze portfolio: AAPL,MSFT and send email to me@example.com", "agent-test"
    )
    (entry,) = ready.state.history
    assert entry.summary == "Tech led the market higher."
    assert entry.key_insights == ("NVDA strong on AI demand", "Trim TSLA")
    assert entry.stocks == ("AAPL", "MSFT")
    assert entry.timestamp == fixed_now
    assert ready.state.last_analysis is entry
    assert ready.state.notice == MSG_ANALYSIS_DONE
    assert ready.state.error == ""
    assert [item["id"] for item in json.loads(memory_store.get(HISTORY_KEY))] == [entry.id]


@pytest.mark.asyncio
async def test_runs_are_newest_first_with_increasing_ids(ready):
    await ready.run_analysis_now()
    ready.add_stock("NVDA")
    await ready.run_analysis_now()

    newest, oldest = ready.state.history
    assert newest.stocks == ("AAPL", "MSFT", "NVDA")
    assert oldest.stocks == ("AAPL", "MSFT")
    assert int(newest.id) > int(oldest.id)


@pytest.mark.asyncio
async def test_missing_fields_fall_back(ready, agent_client):
    agent_client.call_agent.return_value = AgentResponse(success=True, response={"result": {"insights": "oops"}})

    await ready.run_analysis_now()

    assert ready.state.history[0].summary == "Analysis completed"
    assert ready.state.history[0].key_insights == ()


@pytest.mark.asyncio
async def test_requires_stocks(orchestrator, agent_client, memory_store):
    orchestrator.save_email("me@example.com")

    assert not await orchestrator.run_analysis_now()

    assert orchestrator.state.error == MSG_NO_STOCKS
    assert orchestrator.state.notice == ""
    agent_client.call_agent.assert_not_awaited()
    assert HISTORY_KEY not in memory_store.snapshot()


@pytest.mark.asyncio
async def test_requires_email(orchestrator, agent_client):
    orchestrator.add_stock("AAPL")

    assert not await orchestrator.run_analysis_now()

    assert orchestrator.state.error == MSG_NO_EMAIL
    agent_client.call_agent.assert_not_awaited()


@pytest.mark.asyncio
async def test_agent_failure_leaves_history_untouched(ready, agent_client, memory_store):
    await ready.run_analysis_now()
    persisted = memory_store.get(HISTORY_KEY)
    agent_client.call_agent.return_value = AgentResponse(success=False, error="Agent quota exceeded")

    assert not await ready.run_analysis_now()

    assert len(ready.state.history) == 1
    assert memory_store.get(HISTORY_KEY) == persisted
    assert ready.state.error == "Agent quota exceeded"
    assert ready.state.notice == ""


@pytest.mark.asyncio
async def test_agent_failure_without_message(ready, agent_client):
    agent_client.call_agent.return_value = AgentResponse(success=False)

    await ready.run_analysis_now()

    assert ready.state.error == MSG_ANALYSIS_FAILED


@pytest.mark.asyncio
async def test_concurrent_request_is_dropped(ready, agent_client, agent_response):
    release = asyncio.Event()

    async def slow_agent(message, agent_id):
        await release.wait()
        return agent_response

    agent_client.call_agent.side_effect = slow_agent

    first = asyncio.create_task(ready.run_analysis_now())
    await asyncio.sleep(0)
    assert ready.state.analysis_loading

    assert not await ready.run_analysis_now()

    release.set()
    assert await first
    assert not ready.state.analysis_loading
    assert agent_client.call_agent.await_count == 1
    assert len(ready.state.history) == 1
