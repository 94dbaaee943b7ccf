"""Remote service clients."""

from portfolio_briefing.clients.agent import AgentClient
from portfolio_briefing.clients.scheduler import ScheduleClient, cron_to_human

__all__ = [
    "AgentClient",
    "ScheduleClient",
    "cron_to_human",
]
