"""Display formatting for amounts, percentages and instants."""

from datetime import datetime, tzinfo


def format_currency(value: float) -> str:
    """Format a USD amount, e.g. ``-$1,234.50``."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_percent(value: float) -> str:
    """Format a signed percentage, e.g. ``+1.28%``."""
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.2f}%"


def _clock(dt: datetime) -> str:
    hour = dt.hour % 12 or 12
    suffix = "AM" if dt.hour < 12 else "PM"
    return f"{hour}:{dt.minute:02d} {suffix}"


def format_timestamp(dt: datetime, tz: tzinfo | None = None) -> str:
    """Format an instant as ``Oct 20, 2026, 8:30 AM`` in ``tz`` (local time when None)."""
    local = dt.astimezone(tz)
    return f"{local:%b} {local.day}, {local.year}, {_clock(local)}"


def format_run_time(dt: datetime, tz: tzinfo | None = None) -> str:
    """Format an upcoming run as ``Tue, Oct 20, 8:30 AM UTC``."""
    local = dt.astimezone(tz) if tz else dt
    zone = local.tzname() or ""
    return f"{local:%a, %b} {local.day}, {_clock(local)} {zone}".rstrip()
