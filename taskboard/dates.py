"""
Due-date handling.

Due dates arrive as ISO instants ("2025-03-01T00:00:00+00:00"), date-only
strings ("2025-03-01", as the record API stores them) or nothing at all.
All day-level comparisons happen on UTC calendar days; naive values are
read as UTC.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

DueValue = Union[str, date, datetime, None]

DUE_NONE = "none"
DUE_OVERDUE = "overdue"
DUE_TODAY = "today"
DUE_UPCOMING = "upcoming"


def _parse_datetime(value: str) -> datetime:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    if len(text) == 10:
        d = date.fromisoformat(text)
        return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_due(value: DueValue) -> Optional[date]:
    """Return the UTC calendar day of a due value, or None when absent.

    Raises ValueError for text that is not an ISO date or instant.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    return _parse_datetime(str(value)).date()


def due_day(value: DueValue) -> Optional[date]:
    """Like parse_due, but an unreadable stored value counts as no due date."""
    try:
        return parse_due(value)
    except ValueError:
        return None


def to_iso_instant(value: DueValue) -> Optional[str]:
    """Expand a due value to a full ISO-8601 UTC instant.

    A date-only input becomes midnight UTC of that day.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc).isoformat()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc).isoformat()
    return _parse_datetime(str(value)).isoformat()


def to_date_only(value: DueValue) -> str:
    """UTC calendar day of a due value as "YYYY-MM-DD", or "" when absent or unreadable."""
    d = due_day(value)
    return d.isoformat() if d else ""


def today_utc(now: Optional[datetime] = None) -> date:
    if now is None:
        now = datetime.now(timezone.utc)
    return parse_due(now)


def is_overdue(due: DueValue, completed: bool, today: date) -> bool:
    """Pending and due on a calendar day strictly before today."""
    if completed:
        return False
    d = due_day(due)
    return d is not None and d < today


def due_status(due: DueValue, completed: bool, today: date) -> str:
    d = due_day(due)
    if d is None or completed:
        return DUE_NONE
    if d < today:
        return DUE_OVERDUE
    if d == today:
        return DUE_TODAY
    return DUE_UPCOMING


def due_label(due: DueValue, today: date) -> str:
    """Human label: "Today", "Tomorrow", or e.g. "Mar 01, 2025"."""
    d = due_day(due)
    if d is None:
        return ""
    if d == today:
        return "Today"
    if d == today + timedelta(days=1):
        return "Tomorrow"
    return d.strftime("%b %d, %Y")
