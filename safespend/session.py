# safespend/session.py
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Set

import anyio

from safespend import navigation
from safespend.config import income_settings
from safespend.core import aggregation
from safespend.core.aggregation import SafeToSpend
from safespend.core.models import INCOME_CATEGORY, INCOME_TITLE, Transaction
from safespend.errors import SessionClosedError
from safespend.policies import admit_expense, plan_income_upsert
from safespend.store import get_store
from safespend.store.base import BaseStore
from safespend.utils import parse_amount

logger = logging.getLogger(__name__)


class LedgerSession:
    """
    What a single view works against: the loaded transactions plus the
    selected-month cursor.

    Store calls are blocking and run in a worker thread. Every mutation is
    followed by a full reload, and derived figures are computed on demand
    from the loaded list. ``close()`` cancels whatever is waiting on the
    store; results that arrive afterwards are dropped instead of being
    written into the session.
    """

    def __init__(
        self,
        store: BaseStore,
        cursor: Optional[datetime] = None,
        income_title: str = INCOME_TITLE,
        income_category: str = INCOME_CATEGORY,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.income_title = income_title
        self.income_category = income_category
        self._clock = clock
        self.cursor = cursor or clock()
        self.transactions: List[Transaction] = []
        self._schema_ready = False
        self._closed = False
        self._scopes: Set[anyio.CancelScope] = set()

    @classmethod
    def from_config(cls, config: Dict[str, object], cursor: Optional[datetime] = None) -> "LedgerSession":
        title, category = income_settings(config)
        return cls(get_store(config), cursor=cursor, income_title=title, income_category=category)

    async def __aenter__(self) -> "LedgerSession":
        await self.load_all()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True
        for scope in list(self._scopes):
            scope.cancel()

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("The ledger session has been closed")

    async def _run(self, func, *args):
        self._ensure_open()
        with anyio.CancelScope() as scope:
            self._scopes.add(scope)
            try:
                return await anyio.to_thread.run_sync(func, *args)
            finally:
                self._scopes.discard(scope)
        raise SessionClosedError("The ledger session was closed while waiting for the store")

    def _commit(self, transactions: Iterable[Transaction]) -> List[Transaction]:
        if self._closed:
            logger.debug("Dropping reload result for a closed session")
            raise SessionClosedError("The ledger session has been closed")
        self.transactions = list(transactions)
        return self.transactions

    # -- store backed operations -------------------------------------------

    async def load_all(self) -> List[Transaction]:
        if not self._schema_ready:
            await self._run(self.store.create_table)
            self._schema_ready = True
        return self._commit(await self._run(self.store.list_all))

    async def add_expense(self, title: str, amount, category: str) -> List[Transaction]:
        self._ensure_open()
        tx = admit_expense(
            title,
            amount,
            category,
            self.transactions,
            self.cursor,
            income_category=self.income_category,
            now=self._clock(),
        )
        tx_id = await self._run(self.store.insert, tx)
        logger.info("Added expense %d (%s, %.2f)", tx_id, tx.category, tx.amount)
        return await self.load_all()

    async def set_monthly_income(self, amount) -> List[Transaction]:
        self._ensure_open()
        # Validate before touching the store at all.
        parse_amount(amount)
        current = await self.load_all()
        stale, income = plan_income_upsert(
            amount,
            current,
            self.cursor,
            title=self.income_title,
            category=self.income_category,
        )
        tx_id = await self._run(self.store.replace, stale, income)
        logger.info(
            "Set income for %04d-%02d to %.2f (id %d, replaced %s)",
            self.cursor.year,
            self.cursor.month,
            income.amount,
            tx_id,
            stale,
        )
        return await self.load_all()

    async def delete_transaction(self, tx_id: int) -> bool:
        deleted = await self._run(self.store.delete_by_id, tx_id)
        if not deleted:
            logger.info("Transaction %s not found; nothing deleted", tx_id)
        await self.load_all()
        return deleted

    # -- cursor ---------------------------------------------------------------

    def set_selected_month(self, timestamp: datetime) -> datetime:
        self.cursor = timestamp
        return self.cursor

    def previous_month(self) -> datetime:
        return self.set_selected_month(navigation.previous_month(self.cursor))

    def next_month(self) -> datetime:
        return self.set_selected_month(navigation.next_month(self.cursor))

    def previous_year(self) -> datetime:
        return self.set_selected_month(navigation.previous_year(self.cursor))

    def next_year(self) -> datetime:
        return self.set_selected_month(navigation.next_year(self.cursor))

    def jump_to_month(self, year: int, month: int) -> datetime:
        return self.set_selected_month(navigation.jump_to_month(self.cursor, year, month))

    # -- selectors ------------------------------------------------------------

    def total_income(self) -> float:
        return aggregation.total_income(self.transactions, self.cursor)

    # The income form pre-fills with whatever the month already has.
    existing_income = total_income

    def total_expense(self) -> float:
        return aggregation.total_expense(self.transactions, self.cursor)

    def budget(self) -> float:
        return aggregation.monthly_budget(self.transactions, self.cursor)

    def safe_to_spend(self) -> SafeToSpend:
        return aggregation.safe_to_spend(self.budget(), self.total_expense())

    def days_left(self, today: Optional[date] = None) -> int:
        return aggregation.days_left(self.cursor, today or self._clock().date())

    def category_breakdown(self) -> List[Dict[str, object]]:
        return aggregation.category_breakdown(self.transactions, self.cursor)

    def recent_transactions(self, categories: Optional[Iterable[str]] = None) -> List[Transaction]:
        return aggregation.recent_transactions(self.transactions, self.cursor, categories)

    def summary(self, today: Optional[date] = None) -> Dict[str, object]:
        return aggregation.monthly_summary(
            self.transactions, self.cursor, today or self._clock().date()
        )
