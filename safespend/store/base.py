# safespend/store/base.py
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List

from safespend.core.models import Transaction
from safespend.errors import PartialFailureError, StoreError

logger = logging.getLogger(__name__)


class BaseStore(ABC):
    @abstractmethod
    def create_table(self) -> None:
        """Create the schema if needed. Safe to call on every start."""

    @abstractmethod
    def insert(self, transaction: Transaction) -> int:
        """Persist ``transaction`` (its id is ignored) and return the new id."""

    @abstractmethod
    def list_all(self) -> List[Transaction]:
        """Return every stored transaction, in no particular order."""

    @abstractmethod
    def delete_by_id(self, tx_id: int) -> bool:
        """Delete one row. Returns False when no row had that id."""

    def replace(self, tx_ids: Iterable[int], transaction: Transaction) -> int:
        """
        Delete ``tx_ids`` one by one, then insert ``transaction``.

        This generic version is not atomic. A failure after at least one
        row is gone raises PartialFailureError naming the deleted ids, since
        the month may now have no income at all. Stores that can do better
        override it with a single transaction.
        """
        deleted: List[int] = []
        try:
            for tx_id in tx_ids:
                self.delete_by_id(tx_id)
                deleted.append(tx_id)
            return self.insert(transaction)
        except StoreError as exc:
            if not deleted:
                raise
            logger.error("Replace stopped after deleting %s: %s", deleted, exc)
            raise PartialFailureError(
                "Income was only partially updated; please review this month and retry.",
                deleted_ids=deleted,
            ) from exc
