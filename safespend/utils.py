# safespend/utils.py
from __future__ import annotations

import math
from calendar import monthrange
from datetime import datetime

from safespend.errors import ValidationError


def sanitize_amount(value) -> float:
    """Return ``value`` as a finite float, or 0.0 when it is not one."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def parse_amount(value) -> float:
    """Parse user input into a positive amount or raise ValidationError."""
    if isinstance(value, bool):
        raise ValidationError("Invalid amount")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError("Please enter an amount")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid amount: {value!r}") from exc
    if not math.isfinite(number) or number <= 0:
        raise ValidationError(f"Invalid amount: {value!r}")
    return number


def parse_month(month_str: str, now: datetime | None = None) -> datetime:
    """
    Turn a YYYY-MM string into a cursor inside that month.

    The day and time of ``now`` are kept (day clamped to the month length)
    so the cursor behaves like one moved there by navigation.
    """
    try:
        year, month = map(int, month_str.split("-"))
    except ValueError as exc:
        raise ValidationError(f"Month must look like YYYY-MM, got {month_str!r}") from exc
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")
    if not 1 <= year <= 9999:
        raise ValidationError(f"Year out of range: {year}")
    base = now or datetime.now()
    return base.replace(year=year, month=month, day=min(base.day, days_in_month(year, month)))


def days_in_month(year: int, month: int) -> int:
    return monthrange(year, month)[1]


def add_months(original: datetime, months: int) -> datetime:
    month_index = original.month - 1 + months
    year = original.year + month_index // 12
    month = month_index % 12 + 1
    if not 1 <= year <= 9999:
        raise ValidationError(f"Year out of range: {year}")
    day = min(original.day, days_in_month(year, month))
    return original.replace(year=year, month=month, day=day)


def same_month(value: datetime, cursor: datetime) -> bool:
    return value.year == cursor.year and value.month == cursor.month


def month_label(cursor: datetime) -> str:
    return cursor.strftime("%B %Y")


def parse_timestamp(value) -> datetime:
    """Parse an ISO 8601 timestamp into a naive local datetime."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed
