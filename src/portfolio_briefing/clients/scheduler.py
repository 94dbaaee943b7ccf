"""
Scheduling service client.

Boundary to the remote scheduler that owns the recurring analysis job:
fetch the job, pause/resume it, trigger an out-of-band run and read its
execution logs. Also renders cron expressions as English text for display.
"""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from portfolio_briefing.clients.base import ServiceClient
from portfolio_briefing.models import (
    ActionResponse,
    ExecutionLogEntry,
    LogsResponse,
    ScheduleRecord,
    ScheduleResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_LOG_LIMIT = 10

_DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
_DAY_ALIASES = {name[:3].upper(): index for index, name in enumerate(_DAY_NAMES)}


class ScheduleClient(ServiceClient):
    """
    Async client for the scheduling service.

    Usage:
        client = ScheduleClient("https://scheduler.example.com/api")
        result = await client.get_schedule("698be3f5ebe6fd87d1dcc0f0")
        if result.success:
            print(result.schedule.cron_expression)
    """

    name = "scheduler"

    async def get_schedule(self, schedule_id: str) -> ScheduleResponse:
        reply = await self._request("GET", f"/schedules/{schedule_id}")
        if not reply.ok:
            return ScheduleResponse(success=False, error=reply.error)

        payload: Any = reply.payload.get("schedule", reply.payload) if reply.payload else None
        try:
            schedule = ScheduleRecord.model_validate(payload)
        except PydanticValidationError as e:
            logger.warning(f"Malformed schedule payload for {schedule_id}: {e.error_count()} errors")
            return ScheduleResponse(success=False, error="Malformed schedule returned by scheduler")
        return ScheduleResponse(success=True, schedule=schedule)

    async def pause_schedule(self, schedule_id: str) -> ActionResponse:
        return await self._action(schedule_id, "pause")

    async def resume_schedule(self, schedule_id: str) -> ActionResponse:
        return await self._action(schedule_id, "resume")

    async def trigger_schedule_now(self, schedule_id: str) -> ActionResponse:
        return await self._action(schedule_id, "trigger")

    async def get_schedule_logs(self, schedule_id: str, limit: int = DEFAULT_LOG_LIMIT) -> LogsResponse:
        reply = await self._request("GET", f"/schedules/{schedule_id}/logs", params={"limit": limit})
        if not reply.ok:
            return LogsResponse(success=False, error=reply.error)

        raw_items = reply.payload.get("executions") if reply.payload else None
        if not isinstance(raw_items, list):
            return LogsResponse(success=False, error="Malformed execution logs returned by scheduler")

        executions: list[ExecutionLogEntry] = []
        for item in raw_items:
            try:
                executions.append(ExecutionLogEntry.model_validate(item))
            except PydanticValidationError:
                logger.warning(f"Skipping malformed execution log entry: {item!r}")
        return LogsResponse(success=True, executions=executions[:limit])

    async def _action(self, schedule_id: str, action: str) -> ActionResponse:
        reply = await self._request("POST", f"/schedules/{schedule_id}/{action}")
        if not reply.ok:
            return ActionResponse(success=False, error=reply.error)
        logger.info(f"Schedule {schedule_id}: {action} accepted")
        return ActionResponse(success=True)


def _format_clock(minute: int, hour: int) -> str:
    suffix = "AM" if hour < 12 else "PM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {suffix}"


def _parse_day(token: str) -> int | None:
    token = token.strip().upper()
    if token.isdigit():
        value = int(token)
        return value % 7 if 0 <= value <= 7 else None
    return _DAY_ALIASES.get(token)


def _describe_days(field: str) -> str | None:
    if field == "1-5" or field.upper() == "MON-FRI":
        return "Weekdays"
    if "-" in field:
        return None

    days: list[int] = []
    for token in field.split(","):
        day = _parse_day(token)
        if day is None:
            return None
        if day not in days:
            days.append(day)

    if sorted(days) == [0, 6]:
        return "Weekends"
    if len(days) == 1:
        return f"{_DAY_NAMES[days[0]]}s"
    return ", ".join(_DAY_NAMES[d][:3] for d in days)


def cron_to_human(cron_expression: str) -> str:
    """
    Render a 5-field cron expression as English text.

    Handles the common shapes (every N minutes, hourly, daily, weekdays,
    specific days of the week, monthly). Anything else is returned as
    ``"Cron: <expression>"``.

    Example:
        >>> cron_to_human("30 8 * * *")
        'Daily at 8:30 AM'
        >>> cron_to_human("0 9 * * 1-5")
        'Weekdays at 9:00 AM'
    """
    fields = cron_expression.split()
    fallback = f"Cron: {cron_expression.strip()}"
    if len(fields) != 5:
        return fallback

    minute, hour, dom, month, dow = fields

    if fields == ["*"] * 5:
        return "Every minute"
    if minute.startswith("*/") and minute[2:].isdigit() and [hour, dom, month, dow] == ["*"] * 4:
        return f"Every {int(minute[2:])} minutes"
    if not minute.isdigit() or int(minute) > 59:
        return fallback
    if hour == "*" and [dom, month, dow] == ["*"] * 3:
        return f"Hourly at :{int(minute):02d}"
    if hour.startswith("*/") and hour[2:].isdigit() and [dom, month, dow] == ["*"] * 3:
        return f"Every {int(hour[2:])} hours at :{int(minute):02d}"
    if not hour.isdigit() or int(hour) > 23 or month != "*":
        return fallback

    clock = _format_clock(int(minute), int(hour))
    if dom == "*" and dow == "*":
        return f"Daily at {clock}"
    if dom == "*":
        days = _describe_days(dow)
        return f"{days} at {clock}" if days else fallback
    if dow == "*" and dom.isdigit() and 1 <= int(dom) <= 31:
        return f"Monthly on day {int(dom)} at {clock}"
    return fallback
