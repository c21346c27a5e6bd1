# safespend/store/sqlite.py
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List

from safespend.core.models import Transaction, TransactionKind
from safespend.errors import StoreError, ValidationError
from safespend.store.base import BaseStore
from safespend.utils import parse_timestamp, sanitize_amount

logger = logging.getLogger(__name__)


def _init_db(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS transactions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            amount REAL NOT NULL,
            category TEXT NOT NULL,
            kind TEXT DEFAULT 'expense',
            date TEXT NOT NULL
        )
        """
    )
    try:
        # Databases created before income existed lack the column.
        conn.execute("ALTER TABLE transactions ADD COLUMN kind TEXT DEFAULT 'expense'")
        logger.info("Migrated 'kind' column")
    except sqlite3.OperationalError as exc:
        logger.debug("Skipping 'kind' migration: %s", exc)
    conn.commit()


def _row_to_transaction(row) -> Transaction:
    return Transaction(
        id=int(row[0]),
        title=row[1],
        amount=sanitize_amount(row[2]),
        category=row[3],
        kind=TransactionKind.parse(row[4]),
        date=parse_timestamp(row[5]),
    )


def _insert(conn: sqlite3.Connection, tx: Transaction) -> int:
    if sanitize_amount(tx.amount) <= 0:
        raise ValidationError(f"Refusing to store non-positive amount {tx.amount!r}")
    cur = conn.execute(
        """
        INSERT INTO transactions (title, amount, category, kind, date)
        VALUES (?, ?, ?, ?, ?)
        """,
        (
            tx.title.strip(),
            float(tx.amount),
            tx.category.strip(),
            tx.kind.value,
            tx.date.isoformat(),
        ),
    )
    return int(cur.lastrowid)


class SQLiteStore(BaseStore):
    """Transaction store backed by a single SQLite table."""

    def __init__(self, config=None, db_path: str | Path | None = None):
        config = config or {}
        self.db_path = Path(db_path or config.get('db_path', 'safespend.db'))

    @contextmanager
    def _connect(self, action: str) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            logger.exception("Could not open %s", self.db_path)
            raise StoreError(f"Could not open database {self.db_path}") from exc
        try:
            yield conn
        except sqlite3.Error as exc:
            logger.exception("Could not %s", action)
            raise StoreError(f"Could not {action}") from exc
        finally:
            conn.close()

    def create_table(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect("initialise the database") as conn:
            _init_db(conn)

    def insert(self, transaction: Transaction) -> int:
        with self._connect("save the transaction") as conn:
            tx_id = _insert(conn, transaction)
            conn.commit()
        logger.debug("Inserted %s transaction %d", transaction.kind.value, tx_id)
        return tx_id

    def list_all(self) -> List[Transaction]:
        with self._connect("load transactions") as conn:
            rows = conn.execute(
                "SELECT id, title, amount, category, kind, date FROM transactions"
            ).fetchall()
        try:
            return [_row_to_transaction(r) for r in rows]
        except (TypeError, ValueError) as exc:
            logger.error("Unreadable row in %s: %s", self.db_path, exc)
            raise StoreError("Could not load transactions") from exc

    def delete_by_id(self, tx_id: int) -> bool:
        with self._connect("delete the transaction") as conn:
            cur = conn.execute("DELETE FROM transactions WHERE id = ?", (int(tx_id),))
            conn.commit()
        return cur.rowcount > 0

    def replace(self, tx_ids: Iterable[int], transaction: Transaction) -> int:
        """Delete ``tx_ids`` and insert ``transaction`` in one transaction."""
        ids = [int(i) for i in tx_ids]
        with self._connect("update the monthly income") as conn:
            try:
                conn.executemany(
                    "DELETE FROM transactions WHERE id = ?", [(i,) for i in ids]
                )
                tx_id = _insert(conn, transaction)
            except ValidationError:
                conn.rollback()
                raise
            conn.commit()
        logger.debug("Replaced transactions %s with %d", ids, tx_id)
        return tx_id
