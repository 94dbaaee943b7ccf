"""
Dependency injection container - Centralized service management.

Simple factory functions, cached where a single shared instance is wanted.
Clients resolve the global aiohttp session lazily, so they must be used
inside ``aiohttp_session_manager()``.
"""

from functools import cache

from portfolio_briefing.clients import AgentClient, ScheduleClient
from portfolio_briefing.config import Config, get_config
from portfolio_briefing.orchestrator import Orchestrator
from portfolio_briefing.storage import MemoryStore, PreferenceStore, SqliteStore, Store


@cache
def get_store() -> SqliteStore:
    """
    Get the SQLite preference store (singleton).

    Returns:
        SqliteStore backed by ``Config.database_path``
    """
    return SqliteStore(get_config().get_db_url())


def get_schedule_client(config: Config | None = None) -> ScheduleClient:
    config = config or get_config()
    return ScheduleClient(config.service.scheduler_api_url)


def get_agent_client(config: Config | None = None) -> AgentClient:
    config = config or get_config()
    return AgentClient(config.service.agent_api_url)


def build_orchestrator(config: Config | None = None, ephemeral: bool = False) -> Orchestrator:
    """
    Assemble an orchestrator from configuration.

    Args:
        config: Configuration; defaults to the cached global config
        ephemeral: Keep preferences in memory instead of the SQLite store

    Returns:
        Orchestrator ready for ``initialize()``
    """
    config = config or get_config()
    store: Store = MemoryStore() if ephemeral else get_store()
    return Orchestrator(
        preferences=PreferenceStore(store),
        schedule_client=get_schedule_client(config),
        agent_client=get_agent_client(config),
        agent_id=config.service.agent_id,
        schedule_id=config.service.schedule_id,
        log_limit=config.schedule_view.log_limit,
        log_refresh_delay=config.schedule_view.log_refresh_delay,
    )
