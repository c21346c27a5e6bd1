# safespend/core/models.py
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

INCOME_TITLE = "Monthly Income"
INCOME_CATEGORY = "Income"


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"

    @classmethod
    def parse(cls, value) -> "TransactionKind":
        """Rows written before the ``kind`` column existed count as expenses."""
        if isinstance(value, cls):
            return value
        if value is None or not str(value).strip():
            return cls.EXPENSE
        return cls(str(value).strip().lower())


@dataclass(frozen=True)
class Transaction:
    title: str
    amount: float
    category: str
    date: datetime
    kind: TransactionKind = TransactionKind.EXPENSE
    id: int | None = None

    @property
    def is_income(self) -> bool:
        return self.kind is TransactionKind.INCOME

    @property
    def is_expense(self) -> bool:
        return self.kind is TransactionKind.EXPENSE

    def with_id(self, tx_id: int) -> "Transaction":
        return replace(self, id=tx_id)
