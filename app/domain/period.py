"""
Date windows for the Today feed.

Periods:
  DAY   - the selected date only
  WEEK  - ISO week (Monday..Sunday) containing the selected date
  MONTH - calendar month containing the selected date

Month navigation clamps to the last day of the target month
(Jan 31 + 1 month -> Feb 28/29).
"""
import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum


class Period(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @classmethod
    def parse(cls, value: "str | Period") -> "Period":
        if isinstance(value, Period):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"invalid period: {value}") from None


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date  # inclusive

    def __contains__(self, d: date) -> bool:
        return self.start <= d <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def to_iso(self) -> tuple[str, str]:
        return self.start.isoformat(), self.end.isoformat()


def month_end(year: int, month: int) -> date:
    """Last calendar day of the given month."""
    return date(year, month, calendar.monthrange(year, month)[1])


def add_months(d: date, n: int) -> date:
    """Shift d by n months, clamping the day to the end of the target month."""
    year, month0 = divmod(d.year * 12 + (d.month - 1) + n, 12)
    last = month_end(year, month0 + 1)
    return last if d.day >= last.day else last.replace(day=d.day)


def resolve_range(selected_date: date, period: Period) -> DateRange:
    """Inclusive [start, end] window of the period containing selected_date."""
    if period == Period.DAY:
        return DateRange(selected_date, selected_date)
    if period == Period.WEEK:
        start = selected_date - timedelta(days=selected_date.weekday())
        return DateRange(start, start + timedelta(days=6))
    if period == Period.MONTH:
        return DateRange(selected_date.replace(day=1), month_end(selected_date.year, selected_date.month))
    raise ValueError(f"unhandled period: {period}")


def navigate(current_date: date, period: Period, offset: int) -> date:
    """Move current_date by offset days, weeks or months depending on period."""
    if period == Period.DAY:
        return current_date + timedelta(days=offset)
    if period == Period.WEEK:
        return current_date + timedelta(weeks=offset)
    if period == Period.MONTH:
        return add_months(current_date, offset)
    raise ValueError(f"unhandled period: {period}")


def next_period(d: date, period: Period) -> date:
    return navigate(d, period, 1)


def previous_period(d: date, period: Period) -> date:
    return navigate(d, period, -1)


def is_same_period(a: date, b: date, period: Period) -> bool:
    return resolve_range(a, period) == resolve_range(b, period)


def is_current_period(d: date, period: Period, today: date) -> bool:
    return is_same_period(d, today, period)
