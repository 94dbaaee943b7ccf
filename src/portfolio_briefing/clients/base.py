"""
Shared HTTP plumbing for the remote service clients.

Every transport problem (HTTP error status, connection failure, timeout,
undecodable body) is folded into a ``RemoteReply`` with ``ok=False`` so the
public client methods can return plain result objects instead of raising.
"""

import logging
from dataclasses import dataclass
from typing import Any

import aiohttp

from portfolio_briefing.infrastructure.http_client import get_aiohttp_session

logger = logging.getLogger(__name__)


@dataclass
class RemoteReply:
    ok: bool
    payload: dict[str, Any] | None = None
    error: str | None = None


def _error_from(payload: Any) -> str | None:
    if isinstance(payload, dict):
        error = payload.get("error") or payload.get("message")
        if isinstance(error, str) and error:
            return error
    return None


class ServiceClient:
    """Base class for JSON-over-HTTP service clients."""

    name: str = "service"

    def __init__(self, base_url: str, session: aiohttp.ClientSession | None = None):
        """
        Args:
            base_url: Service root URL, without trailing slash
            session: Session to use; defaults to the global application session
        """
        self.base_url = base_url.rstrip("/")
        self._session = session

    def _get_session(self) -> aiohttp.ClientSession:
        return self._session or get_aiohttp_session()

    async def _request(
        self,
        method: str,
        path: str = "",
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> RemoteReply:
        url = f"{self.base_url}{path}"
        session = self._get_session()
        try:
            async with session.request(method, url, params=params, json=json_body) as resp:
                try:
                    payload = await resp.json(content_type=None)
                except ValueError:
                    payload = None

                if resp.status >= 400:
                    error = _error_from(payload) or f"HTTP {resp.status}"
                    logger.warning(f"[{self.name}] {method} {path or '/'} failed: {error}")
                    return RemoteReply(ok=False, payload=None, error=error)

                if not isinstance(payload, dict):
                    logger.warning(f"[{self.name}] {method} {path or '/'} returned a non-object body")
                    return RemoteReply(ok=False, error=f"Malformed response from {self.name} service")

                if payload.get("success", True) is False:
                    error = _error_from(payload)
                    logger.info(f"[{self.name}] {method} {path or '/'} reported failure: {error}")
                    return RemoteReply(ok=False, payload=payload, error=error)

                logger.debug(f"[{self.name}] {method} {path or '/'} ok")
                return RemoteReply(ok=True, payload=payload)

        except TimeoutError:
            logger.warning(f"[{self.name}] {method} {path or '/'} timed out")
            return RemoteReply(ok=False, error=f"{self.name.capitalize()} service timed out")
        except aiohttp.ClientError as e:
            logger.warning(f"[{self.name}] {method} {path or '/'} connection error: {e}")
            return RemoteReply(ok=False, error=f"Could not reach {self.name} service: {e}")
