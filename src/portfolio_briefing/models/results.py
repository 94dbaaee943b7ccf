"""
Result models returned by the remote service clients.

Clients never raise for remote failures; they return one of these with
``success=False`` and an ``error`` message instead.
"""

from dataclasses import dataclass, field
from typing import Any

from portfolio_briefing.models.schedule import ExecutionLogEntry, ScheduleRecord

DEFAULT_SUMMARY = "Analysis completed"


@dataclass
class ActionResponse:
    """Outcome of pause / resume / trigger calls."""

    success: bool
    error: str | None = None


@dataclass
class ScheduleResponse:
    """Outcome of fetching the schedule record."""

    success: bool
    schedule: ScheduleRecord | None = None
    error: str | None = None


@dataclass
class LogsResponse:
    """Outcome of fetching execution logs."""

    success: bool
    executions: list[ExecutionLogEntry] = field(default_factory=list)
    error: str | None = None


@dataclass
class AgentResponse:
    """
    Outcome of an agent call.

    ``response`` is the agent's loosely structured payload, expected to look
    like ``{"result": {"summary": str, "insights": [str, ...]}}``. Nothing in
    it is guaranteed, so use ``summary()`` and ``insights()`` to read it.
    """

    success: bool
    response: dict[str, Any] | None = None
    error: str | None = None

    def _result(self) -> dict[str, Any]:
        if not isinstance(self.response, dict):
            return {}
        result = self.response.get("result")
        return result if isinstance(result, dict) else {}

    def summary(self, default: str = DEFAULT_SUMMARY) -> str:
        """Summary text, or ``default`` when missing or empty."""
        summary = self._result().get("summary")
        if isinstance(summary, str) and summary:
            return summary
        return default

    def insights(self) -> list[str]:
        """Key insights, or an empty list when missing or not a list."""
        insights = self._result().get("insights")
        if not isinstance(insights, list):
            return []
        return [str(item) for item in insights]
