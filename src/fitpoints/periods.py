# src/fitpoints/periods.py

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator, Optional

from .config import settings
from .errors import ValidationError

PERIODS = ("today", "week", "month", "all")

@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

def week_bounds(reference: date) -> DateRange:
    """Monday through Sunday of the week containing reference."""
    start = reference - timedelta(days=reference.weekday())
    return DateRange(start, start + timedelta(days=6))

def week_window(week_offset: int = 0, today: Optional[date] = None) -> DateRange:
    """Calendar week week_offset whole weeks before the current one."""
    if isinstance(week_offset, bool) or not isinstance(week_offset, int) or week_offset < 0:
        raise ValidationError("Week offset must be a non-negative whole number")
    today = today or date.today()
    return week_bounds(today - timedelta(weeks=week_offset))

def resolve_period(period: str = "week", today: Optional[date] = None,
                   custom_start: Optional[date] = None, custom_end: Optional[date] = None) -> DateRange:
    """Concrete inclusive range for a shortcut; both custom bounds win over it."""
    today = today or date.today()

    if custom_start and custom_end:
        if custom_start > custom_end:
            raise ValidationError("Start date must not be after end date")
        return DateRange(custom_start, custom_end)

    if period == "today":
        return DateRange(today, today)
    if period == "week":
        return week_bounds(today)
    if period == "month":
        last_day = calendar.monthrange(today.year, today.month)[1]
        return DateRange(today.replace(day=1), today.replace(day=last_day))
    if period == "all":
        return DateRange(settings.all_time_start, today)

    raise ValidationError(f"Unknown period '{period}'. Use one of: {', '.join(PERIODS)}")
