"""Shared fixtures for portfolio_briefing tests."""

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from portfolio_briefing.clients import AgentClient, ScheduleClient
from portfolio_briefing.models import (
    ActionResponse,
    AgentResponse,
    ExecutionLogEntry,
    LogsResponse,
    ScheduleRecord,
    ScheduleResponse,
)
from portfolio_briefing.orchestrator import Orchestrator
from portfolio_briefing.storage import MemoryStore, PreferenceStore

AGENT_ID = "agent-test"
SCHEDULE_ID = "schedule-test"


@pytest.fixture
def fixed_now():
    """Tuesday, Oct 20 2026, 09:00 UTC."""
    return datetime(2026, 10, 20, 9, 0, tzinfo=UTC)


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def preferences(memory_store):
    return PreferenceStore(memory_store)


@pytest.fixture
def schedule_factory():
    """Build ScheduleRecord instances with overridable fields."""

    def _create(**overrides) -> ScheduleRecord:
        data = {
            "id": SCHEDULE_ID,
            "cron_expression": "30 8 * * *",
            "timezone": "UTC",
            "is_active": True,
        }
        data.update(overrides)
        return ScheduleRecord(**data)

    return _create


@pytest.fixture
def sample_logs():
    return [
        ExecutionLogEntry(id="exec-2", executed_at=datetime(2026, 10, 20, 8, 30, tzinfo=UTC), success=True),
        ExecutionLogEntry(id="exec-1", executed_at=datetime(2026, 10, 19, 8, 30, tzinfo=UTC), success=False),
    ]


@pytest.fixture
def schedule_client(schedule_factory, sample_logs):
    """Stubbed scheduling service: an active daily schedule and two log entries."""
    client = MagicMock(spec=ScheduleClient)
    client.get_schedule = AsyncMock(return_value=ScheduleResponse(success=True, schedule=schedule_factory()))
    client.pause_schedule = AsyncMock(return_value=ActionResponse(success=True))
    client.resume_schedule = AsyncMock(return_value=ActionResponse(success=True))
    client.trigger_schedule_now = AsyncMock(return_value=ActionResponse(success=True))
    client.get_schedule_logs = AsyncMock(return_value=LogsResponse(success=True, executions=sample_logs))
    return client


@pytest.fixture
def agent_response():
    return AgentResponse(
        success=True,
        response={
            "result": {
                "summary": "Tech led the market higher.",
                "insights": ["NVDA strong on AI demand", "Trim TSLA"],
            }
        },
    )


@pytest.fixture
def agent_client(agent_response):
    client = MagicMock(spec=AgentClient)
    client.call_agent = AsyncMock(return_value=agent_response)
    return client


@pytest.fixture
def orchestrator(preferences, schedule_client, agent_client, fixed_now):
    return Orchestrator(
        preferences=preferences,
        schedule_client=schedule_client,
        agent_client=agent_client,
        agent_id=AGENT_ID,
        schedule_id=SCHEDULE_ID,
        log_limit=10,
        log_refresh_delay=0.01,
        clock=lambda: fixed_now,
    )


@pytest.fixture
def fake_backend():
    """
    Start an aiohttp test server for the given routes.

    Usage:
        async with fake_backend(routes) as (base_url, session):
            client = ScheduleClient(base_url, session=session)
    """

    @asynccontextmanager
    async def _start(routes: list[web.RouteDef]):
        app = web.Application()
        app.router.add_routes(routes)
        async with TestServer(app) as server:
            async with aiohttp.ClientSession() as session:
                yield str(server.make_url("/api")), session

    return _start
