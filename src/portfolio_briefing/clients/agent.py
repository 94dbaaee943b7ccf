"""
Analysis agent client.

Submits a natural-language instruction to the remote AI agent and returns its
loosely structured result. The analysis itself is opaque to this package.
"""

import logging

from portfolio_briefing.clients.base import ServiceClient
from portfolio_briefing.models import AgentResponse

logger = logging.getLogger(__name__)


class AgentClient(ServiceClient):
    """
    Async client for the analysis agent service.

    Usage:
        client = AgentClient("https://agent.example.com/api/agent")
        result = await client.call_agent("Analyze portfolio: AAPL", agent_id)
        if result.success:
            print(result.summary())
    """

    name = "agent"

    async def call_agent(self, message: str, agent_id: str) -> AgentResponse:
        """
        Send one instruction to the agent.

        Args:
            message: Natural-language instruction
            agent_id: Identifier of the agent to run

        Returns:
            AgentResponse; ``success=False`` with ``error`` set on any failure
        """
        logger.info(f"Calling agent {agent_id}: {message[:120]}")
        reply = await self._request("POST", json_body={"message": message, "agent_id": agent_id})
        if not reply.ok:
            return AgentResponse(success=False, error=reply.error)

        response = reply.payload.get("response") if reply.payload else None
        if response is not None and not isinstance(response, dict):
            logger.warning(f"Agent {agent_id} returned a non-object response, ignoring its content")
            response = None
        return AgentResponse(success=True, response=response)
