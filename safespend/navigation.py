# safespend/navigation.py
"""Selected-month cursor transitions.

The cursor is a plain datetime. Month and year steps keep the day of month
where the target month allows it and clamp it otherwise (Jan 31 -> Feb 28),
and always keep the time of day. There is no bound of its own; stepping
outside the years 1-9999 that datetime supports raises ValidationError.
"""
from __future__ import annotations

from datetime import datetime

from safespend.errors import ValidationError
from safespend.utils import add_months, days_in_month


def previous_month(cursor: datetime) -> datetime:
    return add_months(cursor, -1)


def next_month(cursor: datetime) -> datetime:
    return add_months(cursor, 1)


def previous_year(cursor: datetime) -> datetime:
    return add_months(cursor, -12)


def next_year(cursor: datetime) -> datetime:
    return add_months(cursor, 12)


def jump_to_month(cursor: datetime, year: int, month: int) -> datetime:
    """Move the cursor to an absolute month, as a month picker does."""
    if not 1 <= int(month) <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")
    if not 1 <= int(year) <= 9999:
        raise ValidationError(f"Year out of range: {year}")
    year, month = int(year), int(month)
    return cursor.replace(year=year, month=month, day=min(cursor.day, days_in_month(year, month)))
