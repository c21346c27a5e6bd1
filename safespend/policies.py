# safespend/policies.py
"""Rules deciding what a user submission turns into before it hits the store.

Both policies work on the currently loaded transaction list and never touch
the store themselves, so a rejected submission cannot leave a trace.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from safespend.core.aggregation import total_income, transactions_in_month
from safespend.core.models import (
    INCOME_CATEGORY,
    INCOME_TITLE,
    Transaction,
    TransactionKind,
)
from safespend.errors import AdmissionError, ValidationError
from safespend.utils import parse_amount, same_month

INCOME_REQUIRED_MESSAGE = (
    "You cannot add expenses without setting a monthly income first. "
    "Please set your income for this month to define your budget."
)


def plan_income_upsert(
    amount,
    transactions: Sequence[Transaction],
    cursor: datetime,
    title: str = INCOME_TITLE,
    category: str = INCOME_CATEGORY,
) -> Tuple[List[int], Transaction]:
    """
    Work out how to make ``amount`` the only income of the cursor's month.

    Returns the ids of every income row already in that month (all of them,
    so duplicates left by earlier failures collapse into one) and the single
    income transaction that replaces them. The new row is dated at the
    cursor, not at the wall clock, so it lands in the month being edited.
    """
    value = parse_amount(amount)
    stale = [
        tx.id
        for tx in transactions_in_month(transactions, cursor)
        if tx.is_income and tx.id is not None
    ]
    income = Transaction(
        title=title,
        amount=value,
        category=category,
        kind=TransactionKind.INCOME,
        date=cursor,
    )
    return stale, income


def expense_date(cursor: datetime, now: Optional[datetime] = None) -> datetime:
    """Expenses are stamped "now", unless another month is being viewed."""
    now = now or datetime.now()
    return now if same_month(now, cursor) else cursor


def admit_expense(
    title: str,
    amount,
    category: str,
    transactions: Sequence[Transaction],
    cursor: datetime,
    income_category: str = INCOME_CATEGORY,
    now: Optional[datetime] = None,
) -> Transaction:
    """Validate an expense submission and check the month has a budget."""
    title = (title or "").strip()
    category = (category or "").strip()
    if not title or not category:
        raise ValidationError("Please fill all fields for expense")
    if category.casefold() == income_category.casefold():
        raise ValidationError(f"'{income_category}' is reserved for income")
    value = parse_amount(amount)

    if total_income(transactions, cursor) <= 0:
        raise AdmissionError(INCOME_REQUIRED_MESSAGE)

    return Transaction(
        title=title,
        amount=value,
        category=category,
        kind=TransactionKind.EXPENSE,
        date=expense_date(cursor, now),
    )
