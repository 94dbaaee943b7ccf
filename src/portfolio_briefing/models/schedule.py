"""
Schedule models mirrored from the remote scheduling service.

These are parsed from the scheduler's JSON payloads and held only in memory.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# the scheduler answers in snake_case; camelCase payloads are accepted too
_WIRE_CONFIG = ConfigDict(
    frozen=True,
    extra="ignore",
    coerce_numbers_to_str=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class ScheduleRecord(BaseModel):
    """The single recurring analysis job bound to this installation."""

    model_config = _WIRE_CONFIG

    id: str = Field(description="Schedule job identifier")
    cron_expression: str = Field(description="5-field cron expression: minute hour day-of-month month day-of-week")
    timezone: str = Field(default="UTC", description="IANA timezone the cron expression is evaluated in")
    is_active: bool = Field(default=False, description="Whether the job is currently running on schedule")
    next_run_time: datetime | None = Field(default=None, description="Next fire time reported by the scheduler")
    last_run_at: datetime | None = Field(default=None, description="When the job last ran")
    last_run_success: bool | None = Field(default=None, description="Outcome of the last run, None if unknown")

    @property
    def status_label(self) -> str:
        return "Active" if self.is_active else "Paused"


class ExecutionLogEntry(BaseModel):
    """One past invocation of the schedule job."""

    model_config = _WIRE_CONFIG

    id: str = Field(description="Execution identifier")
    executed_at: datetime = Field(description="When the execution started")
    success: bool = Field(default=False, description="Whether the execution succeeded")
