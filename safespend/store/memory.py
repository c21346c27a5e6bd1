# safespend/store/memory.py
from __future__ import annotations

import itertools
import threading
from typing import Dict, List

from safespend.core.models import Transaction
from safespend.errors import ValidationError
from safespend.store.base import BaseStore
from safespend.utils import sanitize_amount


class MemoryStore(BaseStore):
    """Process-local store, used for dry runs and tests.

    It relies on the generic, non-atomic ``replace``.
    """

    def __init__(self, config=None):
        self._rows: Dict[int, Transaction] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create_table(self) -> None:
        return

    def insert(self, transaction: Transaction) -> int:
        if sanitize_amount(transaction.amount) <= 0:
            raise ValidationError(f"Refusing to store non-positive amount {transaction.amount!r}")
        with self._lock:
            tx_id = next(self._ids)
            self._rows[tx_id] = transaction.with_id(tx_id)
        return tx_id

    def list_all(self) -> List[Transaction]:
        with self._lock:
            return list(self._rows.values())

    def delete_by_id(self, tx_id: int) -> bool:
        with self._lock:
            return self._rows.pop(int(tx_id), None) is not None
