"""
Validation utilities for backend payload values
"""
import re
from datetime import date, datetime, timezone

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{1,2})(?::\d{1,2}(?:\.\d+)?)?\s*$")


def normalize_time_of_day(value: str | None) -> str | None:
    """
    Normalize a time-of-day string to zero-padded "HH:MM"

    Args:
        value: "H:M", "HH:MM" or "HH:MM:SS" (seconds are dropped)

    Returns:
        "HH:MM", or None if the value is empty or not a valid 24-hour time

    Example:
        >>> normalize_time_of_day("9:5")
        "09:05"
        >>> normalize_time_of_day("25:00")
        None
    """
    if value is None:
        return None
    m = _TIME_RE.match(str(value))
    if not m:
        return None
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        return None
    return f"{hours:02d}:{minutes:02d}"


def parse_wire_date(value) -> date | None:
    """
    Parse a date sent by the backend.

    Accepts date/datetime objects, "YYYY-MM-DD" and ISO-8601 datetimes
    ("2026-03-15T08:00:00.000Z"). Datetimes keep their own calendar day,
    no timezone conversion is applied.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, dict) and "_seconds" in value:
        # Firestore Timestamp serialised as {"_seconds": ..., "_nanoseconds": ...}
        return datetime.fromtimestamp(int(value["_seconds"]), tz=timezone.utc).date()
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"unsupported date value: {value!r}")
