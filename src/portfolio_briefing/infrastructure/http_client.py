"""Global aiohttp ClientSession management"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiohttp

_session: aiohttp.ClientSession | None = None


def get_aiohttp_session() -> aiohttp.ClientSession:
    """Get the global aiohttp session (only valid inside aiohttp_session_manager)."""
    if _session is None:
        raise RuntimeError("aiohttp session not initialized. Use aiohttp_session_manager().")
    return _session


@asynccontextmanager
async def aiohttp_session_manager(
    timeout: float = 30.0,
    api_key: str | None = None,
) -> AsyncIterator[aiohttp.ClientSession]:
    """Application-level aiohttp session lifecycle.

    Args:
        timeout: Total per-request timeout in seconds
        api_key: Optional key sent as ``x-api-key`` on every request
    """
    global _session

    headers = {"x-api-key": api_key} if api_key else None
    _session = aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=timeout),
        connector=aiohttp.TCPConnector(limit=10, limit_per_host=5),
        headers=headers,
    )

    try:
        yield _session
    finally:
        await _session.close()
        _session = None
