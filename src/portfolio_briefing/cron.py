"""
Cron projection.

Turns the schedule job's cron expression and timezone into display metadata:
an English description and the next few run instants.

All five cron fields are evaluated (via APScheduler's CronTrigger) in the
schedule's timezone. As in classic cron, a day matching either the
day-of-month or the day-of-week field fires when both are restricted.
"""

import logging
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.combining import OrTrigger
from apscheduler.triggers.cron import CronTrigger

from portfolio_briefing.clients.scheduler import cron_to_human
from portfolio_briefing.exceptions import CronFormatError
from portfolio_briefing.utils.formatting import format_run_time

logger = logging.getLogger(__name__)

INVALID_CRON_MESSAGE = "Invalid cron expression"
DEFAULT_RUN_COUNT = 5

# classic cron numbers Sunday as 0 (and 7); CronTrigger numbers Monday as 0
_CRON_DAY_NAMES = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]
_CRON_DAY_ALIASES = {name: index for index, name in enumerate(_CRON_DAY_NAMES)}

_ONE_MICROSECOND = timedelta(microseconds=1)


def split_cron(cron_expression: str) -> list[str]:
    """Split into the five cron fields, raising CronFormatError otherwise."""
    fields = cron_expression.split()
    if len(fields) != 5:
        raise CronFormatError(f"Expected 5 cron fields, got {len(fields)}: {cron_expression!r}")
    return fields


def humanize(cron_expression: str, formatter: Callable[[str], str] = cron_to_human) -> str:
    """Validate the expression shape, then render it with the scheduler's formatter."""
    split_cron(cron_expression)
    return formatter(cron_expression)


def _day_value(token: str) -> int:
    token = token.lower()
    if token in _CRON_DAY_ALIASES:
        return _CRON_DAY_ALIASES[token]
    value = int(token)
    if not 0 <= value <= 7:
        raise CronFormatError(f"Day of week out of range: {token}")
    return value % 7


def _expand_day_token(token: str) -> list[int]:
    step = 1
    if "/" in token:
        token, step_str = token.split("/", 1)
        step = int(step_str)
        if step < 1:
            raise CronFormatError(f"Invalid step in day of week: {step_str}")

    if token == "*":
        start, end = 0, 6
    elif "-" in token:
        first, last = token.split("-", 1)
        start, end = _day_value(first), _day_value(last)
        # 1-7 style ranges end on Sunday
        if end == 0 and last not in ("0", "sun"):
            end = 7
    else:
        start = _day_value(token)
        end = start if step == 1 else 6

    if start > end:
        raise CronFormatError(f"Invalid day of week range: {token}")
    return sorted({day % 7 for day in range(start, end + 1, step)})


def _translate_day_of_week(field: str) -> str:
    """Rewrite a classic cron day-of-week field as day names CronTrigger understands."""
    if field in ("*", "?"):
        return "*"
    try:
        days: set[int] = set()
        for token in field.split(","):
            days.update(_expand_day_token(token.strip()))
    except ValueError as e:
        raise CronFormatError(f"Invalid day of week field: {field}") from e
    return ",".join(_CRON_DAY_NAMES[d] for d in sorted(days))


def resolve_timezone(name: str) -> tzinfo:
    """Look up an IANA timezone, falling back to UTC for unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{name}', projecting in UTC")
        return ZoneInfo("UTC")


def _is_unrestricted(field: str) -> bool:
    return field.startswith("*") or field == "?"


def build_trigger(cron_expression: str, tz: tzinfo) -> BaseTrigger:
    """
    Build the trigger for a five-field cron expression.

    When both day fields are restricted a run fires on days matching either
    of them, so the trigger is an OrTrigger of a day-of-month and a
    day-of-week CronTrigger.
    """
    minute, hour, day, month, day_of_week = split_cron(cron_expression)
    weekdays = _translate_day_of_week(day_of_week)
    try:
        if _is_unrestricted(day) or _is_unrestricted(day_of_week):
            return CronTrigger(minute=minute, hour=hour, day=day, month=month, day_of_week=weekdays, timezone=tz)
        return OrTrigger(
            [
                CronTrigger(minute=minute, hour=hour, day=day, month=month, timezone=tz),
                CronTrigger(minute=minute, hour=hour, month=month, day_of_week=weekdays, timezone=tz),
            ]
        )
    except ValueError as e:
        raise CronFormatError(f"Invalid cron expression {cron_expression!r}: {e}") from e


class UpcomingRuns:
    """
    Lazy, finite, restartable sequence of upcoming run instants.

    Each iteration starts again from ``now``; nothing is computed until the
    sequence is iterated. Yields at most ``count`` timezone-aware datetimes,
    fewer only when the expression has no further fire times.

    Raises:
        CronFormatError: at construction, for a malformed expression
    """

    def __init__(
        self,
        cron_expression: str,
        timezone: str,
        count: int = DEFAULT_RUN_COUNT,
        now: datetime | None = None,
    ):
        self.cron_expression = cron_expression
        self.tz = resolve_timezone(timezone)
        self.count = max(count, 0)
        self._now = now
        self._trigger = build_trigger(cron_expression, self.tz)

    def _reference_time(self) -> datetime:
        if self._now is None:
            return datetime.now(self.tz)
        if self._now.tzinfo is None:
            return self._now.replace(tzinfo=self.tz)
        return self._now

    def __iter__(self) -> Iterator[datetime]:
        # strictly after now: a run due at this very instant is already under way
        fire_time = self._trigger.get_next_fire_time(None, self._reference_time() + _ONE_MICROSECOND)
        produced = 0
        while fire_time is not None and produced < self.count:
            yield fire_time
            produced += 1
            fire_time = self._trigger.get_next_fire_time(fire_time, fire_time)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def formatted(self) -> list[str]:
        """Display strings in the schedule's timezone."""
        return [format_run_time(run, self.tz) for run in self]


def project_next_runs(
    cron_expression: str,
    timezone: str,
    count: int = DEFAULT_RUN_COUNT,
    now: datetime | None = None,
) -> list[str]:
    """
    Formatted upcoming run times for display.

    Never raises for a bad expression: returns ``[INVALID_CRON_MESSAGE]`` instead.
    """
    try:
        return UpcomingRuns(cron_expression, timezone, count, now).formatted()
    except CronFormatError as e:
        logger.debug(f"Cannot project runs: {e}")
        return [INVALID_CRON_MESSAGE]
