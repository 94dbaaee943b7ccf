"""Infrastructure module - HTTP session management."""

from portfolio_briefing.infrastructure.http_client import (
    aiohttp_session_manager,
    get_aiohttp_session,
)

__all__ = [
    "aiohttp_session_manager",
    "get_aiohttp_session",
]
