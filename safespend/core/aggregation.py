# safespend/core/aggregation.py
from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from safespend.core.models import Transaction
from safespend.utils import days_in_month, same_month, sanitize_amount


@dataclass(frozen=True)
class SafeToSpend:
    budget: float
    spent: float
    remaining: float
    progress: float

    @property
    def remaining_display(self) -> str:
        if not math.isfinite(self.remaining):
            return "0"
        # Halves round away from zero.
        return str(Decimal(self.remaining).to_integral_value(rounding=ROUND_HALF_UP))

    @property
    def overspent(self) -> bool:
        return self.remaining < 0


def transactions_in_month(
    transactions: Iterable[Transaction], cursor: datetime
) -> List[Transaction]:
    """Return only those transactions in the calendar month of ``cursor``."""
    return [tx for tx in transactions if same_month(tx.date, cursor)]


def filter_by_categories(
    transactions: Iterable[Transaction], categories: Optional[Iterable[str]] = None
) -> List[Transaction]:
    """Keep transactions whose category is in ``categories``.

    An empty or missing selection means no filter at all.
    """
    active = set(categories or ())
    if not active:
        return list(transactions)
    return [tx for tx in transactions if tx.category in active]


def _sum(transactions: Iterable[Transaction]) -> float:
    return sum((sanitize_amount(tx.amount) for tx in transactions), 0.0)


def total_income(transactions: Iterable[Transaction], cursor: datetime) -> float:
    # Every income row counts, even when the upsert left more than one behind.
    return _sum(tx for tx in transactions_in_month(transactions, cursor) if tx.is_income)


def total_expense(transactions: Iterable[Transaction], cursor: datetime) -> float:
    return _sum(tx for tx in transactions_in_month(transactions, cursor) if tx.is_expense)


def monthly_budget(transactions: Iterable[Transaction], cursor: datetime) -> float:
    income = total_income(transactions, cursor)
    return income if income > 0 else 0.0


def safe_to_spend(budget: float, spent: float) -> SafeToSpend:
    """
    Compute what is left of ``budget`` after ``spent``.

    ``remaining`` is not clamped and goes negative on overspend. ``progress``
    is the gauge fraction, clamped to [0, 1] and 0 without a budget.
    """
    budget = sanitize_amount(budget)
    spent = sanitize_amount(spent)
    remaining = budget - spent
    progress = min(max(remaining / budget, 0.0), 1.0) if budget > 0 else 0.0
    return SafeToSpend(budget=budget, spent=spent, remaining=remaining, progress=progress)


def days_left(cursor: datetime, today: Optional[date] = None) -> int:
    """Days in the cursor's month minus today's day of month, floored at 0.

    ``today`` is the real date even when another month is selected.
    """
    today = today or date.today()
    return max(days_in_month(cursor.year, cursor.month) - today.day, 0)


def category_breakdown(
    transactions: Iterable[Transaction], cursor: datetime
) -> List[Dict[str, object]]:
    """Aggregate expense totals of the month grouped by category."""
    totals: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)
    for tx in transactions_in_month(transactions, cursor):
        if not tx.is_expense:
            continue
        totals[tx.category] += sanitize_amount(tx.amount)
        counts[tx.category] += 1

    grand_total = sum(totals.values(), 0.0)
    rows = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [
        {
            "category": category,
            "total": total,
            "transactions": counts[category],
            "percent": (100.0 * total / grand_total) if grand_total > 0 else 0.0,
        }
        for category, total in rows
    ]


def recent_transactions(
    transactions: Iterable[Transaction],
    cursor: datetime,
    categories: Optional[Iterable[str]] = None,
) -> List[Transaction]:
    """Month and category filtered transactions, newest first."""
    selected = filter_by_categories(transactions_in_month(transactions, cursor), categories)
    return sorted(selected, key=lambda tx: (tx.date, tx.id or 0), reverse=True)


def monthly_summary(
    transactions: Sequence[Transaction],
    cursor: datetime,
    today: Optional[date] = None,
) -> Dict[str, object]:
    income = total_income(transactions, cursor)
    expense = total_expense(transactions, cursor)
    budget = income if income > 0 else 0.0
    gauge = safe_to_spend(budget, expense)
    return {
        "year": cursor.year,
        "month": cursor.month,
        "income": income,
        "expense": expense,
        "budget": budget,
        "safe_to_spend": gauge.remaining,
        "safe_to_spend_display": gauge.remaining_display,
        "progress": gauge.progress,
        "days_left": days_left(cursor, today),
        "transactions": len(transactions_in_month(transactions, cursor)),
    }
