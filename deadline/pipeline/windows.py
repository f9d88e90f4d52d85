from __future__ import annotations

import calendar
from datetime import date, datetime, timezone

from deadline.models.articles import DateWindow

OLDEST = "Oldest Period (2-1 years ago)"
EARLY = "Early Period (1 year - 6 months ago)"
MIDDLE = "Middle Period (6-3 months ago)"
RECENT = "Recent Period (Last 3 months)"


def months_before(day: date, months: int) -> date:
    """Same day-of-month ``months`` earlier, clamped to the target month's length."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def plan_windows(now: datetime | date | None = None) -> list[DateWindow]:
    """Four contiguous search windows covering the last two years, oldest first."""
    if now is None:
        now = datetime.now(timezone.utc)
    today = now.date() if isinstance(now, datetime) else now

    two_years_ago = months_before(today, 24)
    one_year_ago = months_before(today, 12)
    six_months_ago = months_before(today, 6)
    three_months_ago = months_before(today, 3)

    return [
        DateWindow(start=two_years_ago, end=one_year_ago, label=OLDEST),
        DateWindow(start=one_year_ago, end=six_months_ago, label=EARLY),
        DateWindow(start=six_months_ago, end=three_months_ago, label=MIDDLE),
        DateWindow(start=three_months_ago, end=today, label=RECENT),
    ]
