"""
Calendar helpers bound to the configured timezone
"""
from datetime import date, datetime
from zoneinfo import ZoneInfo

from app.config import get_settings


def local_today(tz_name: str | None = None) -> date:
    """
    Current calendar date in the stable's timezone (Settings.TIMEZONE by default)
    """
    tz = ZoneInfo(tz_name or get_settings().TIMEZONE)
    return datetime.now(tz).date()
