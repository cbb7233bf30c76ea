# PURPOSE: day arithmetic and deadline urgency classification.
# - Pure functions; "now" is injectable so results are deterministic in tests.
# - classify_deadline() never raises: malformed input maps to status "error".

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta
from typing import Optional, Union

from .errors import MalformedDeadlineError
from .models import NO_DEADLINE, DeadlineAlert

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)

DateLike = Union[date, datetime]

# status -> (rank, icon, color, background)
_STYLES = {
    "no-deadline": (0, None, "#666", "#E0E0E0"),
    "error": (0, None, "#666", "#E0E0E0"),
    "overdue": (4, "🔴", "#FFF", "#FF3B30"),
    "today": (3, "🟠", "#FFF", "#FF9500"),
    "warning": (2, "🟡", "#000", "#FFD60A"),
    "ok": (1, "🟢", "#FFF", "#34C759"),
}


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def day_difference(a: DateLike, b: DateLike) -> int:
    """Whole days from `a` to `b`, rounded up; sign follows `b - a`."""
    delta = _as_datetime(b) - _as_datetime(a)
    return math.ceil(delta / ONE_DAY)


def _parse_deadline(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        raise MalformedDeadlineError(f"unsupported deadline type: {type(value).__name__}")
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError as exc:
        raise MalformedDeadlineError(f"not an ISO date: {value!r}") from exc


def _local_day(value: datetime, now: datetime) -> datetime:
    """Truncate `value` to midnight of its calendar day, in the zone of `now`."""
    if value.tzinfo is not None:
        if now.tzinfo is not None:
            value = value.astimezone(now.tzinfo)
        else:
            value = value.astimezone().replace(tzinfo=None)
    elif now.tzinfo is not None:
        value = value.replace(tzinfo=now.tzinfo)
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _alert(status: str, message: str) -> DeadlineAlert:
    rank, icon, color, background = _STYLES[status]
    return DeadlineAlert(
        status=status,
        message=message,
        severity_rank=rank,
        icon=icon,
        color=color,
        background_color=background,
    )


def classify_deadline(value, now: Optional[datetime] = None) -> DeadlineAlert:
    """Classify a stored deadline (ISO text, datetime, sentinel or None).

    | days until deadline | status  | rank |
    |---------------------|---------|------|
    | < 0                 | overdue | 4    |
    | == 0                | today   | 3    |
    | 1..3                | warning | 2    |
    | > 3                 | ok      | 1    |

    Absent/sentinel values are "no-deadline" and unparsable ones "error" (rank 0).
    """
    if value is None or value == "" or value == NO_DEADLINE:
        return _alert("no-deadline", "No deadline set")

    current = now or datetime.now()
    try:
        deadline = _parse_deadline(value)
        today = _local_day(current, current)
        # shifting zones can push a parsed value past date.min/date.max
        days = day_difference(today, _local_day(deadline, current))
    except (MalformedDeadlineError, OverflowError, ValueError) as exc:
        logger.warning("deadline classification failed value=%r reason=%s", value, exc)
        return _alert("error", "Invalid date")

    if days < 0:
        return _alert("overdue", f"Overdue by {abs(days)} day(s)")
    if days == 0:
        return _alert("today", "Due today!")
    if days <= 3:
        return _alert("warning", f"Due in {days} day(s)")
    return _alert("ok", f"Due in {days} day(s)")


# --- Display helpers ---------------------------------------------------------


def parse_date(text: str) -> Optional[datetime]:
    """Parse ISO text; None when it is not a valid date."""
    try:
        return _parse_deadline(text)
    except MalformedDeadlineError:
        return None


def format_date(value: datetime) -> str:
    """DD/MM/YYYY"""
    return value.strftime("%d/%m/%Y")


def format_time(value: datetime) -> str:
    """HH:MM"""
    return value.strftime("%H:%M")


def format_datetime(value: datetime) -> str:
    return f"{format_date(value)} {format_time(value)}"
