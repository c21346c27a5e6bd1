import sqlite3
from datetime import datetime

import pytest

from safespend.core.models import Transaction, TransactionKind
from safespend.errors import StoreError, ValidationError
from safespend.store import get_store
from safespend.store.memory import MemoryStore
from safespend.store.sqlite import SQLiteStore


def _expense(amount=10.0, when=datetime(2024, 3, 5, 12, 0), category="Food"):
    return Transaction(title="Lunch", amount=amount, category=category, date=when)


def _income(amount=5000.0, when=datetime(2024, 3, 1)):
    return Transaction(
        title="Monthly Income",
        amount=amount,
        category="Income",
        kind=TransactionKind.INCOME,
        date=when,
    )


def _store(tmp_path):
    store = SQLiteStore(db_path=tmp_path / "data" / "ledger.db")
    store.create_table()
    return store


def test_insert_list_delete(tmp_path):
    store = _store(tmp_path)

    first = store.insert(_expense())
    second = store.insert(_income())
    rows = {tx.id: tx for tx in store.list_all()}

    assert set(rows) == {first, second}
    assert rows[first].kind is TransactionKind.EXPENSE
    assert rows[first].date == datetime(2024, 3, 5, 12, 0)
    assert rows[second].is_income

    assert store.delete_by_id(first) is True
    assert store.delete_by_id(first) is False
    assert [tx.id for tx in store.list_all()] == [second]


def test_ids_are_not_reused(tmp_path):
    store = _store(tmp_path)
    first = store.insert(_expense())
    second = store.insert(_expense())
    store.delete_by_id(second)
    third = store.insert(_expense())
    assert third > second > first


def test_create_table_is_idempotent(tmp_path):
    store = _store(tmp_path)
    store.insert(_expense())
    store.create_table()
    store.create_table()
    assert len(store.list_all()) == 1


def test_legacy_rows_without_kind_are_migrated(tmp_path):
    db_path = tmp_path / "legacy.db"
    conn = sqlite3.connect(db_path)
    conn.execute(
        """
        CREATE TABLE transactions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            amount REAL NOT NULL,
            category TEXT NOT NULL,
            date TEXT NOT NULL
        )
        """
    )
    conn.execute(
        "INSERT INTO transactions (title, amount, category, date) VALUES (?, ?, ?, ?)",
        ("Bus", 2.5, "Transport", "2024-03-02T08:15:00"),
    )
    conn.commit()
    conn.close()

    store = SQLiteStore(db_path=db_path)
    store.create_table()
    (legacy,) = store.list_all()

    assert legacy.kind is TransactionKind.EXPENSE
    assert legacy.amount == 2.5


def test_null_kind_reads_as_expense(tmp_path):
    store = _store(tmp_path)
    conn = sqlite3.connect(store.db_path)
    conn.execute(
        "INSERT INTO transactions (title, amount, category, kind, date) VALUES (?, ?, ?, NULL, ?)",
        ("Snack", 3.0, "Food", "2024-03-02T10:00:00.000Z"),
    )
    conn.commit()
    conn.close()

    (row,) = store.list_all()
    assert row.kind is TransactionKind.EXPENSE
    assert row.date.tzinfo is None


@pytest.mark.parametrize("amount", [0, -5, float("nan"), float("inf")])
def test_non_positive_amounts_never_reach_the_store(tmp_path, amount):
    store = _store(tmp_path)
    with pytest.raises(ValidationError):
        store.insert(_expense(amount=amount))
    assert store.list_all() == []


def test_replace_swaps_rows_in_one_step(tmp_path):
    store = _store(tmp_path)
    old = [store.insert(_income(1000)), store.insert(_income(2000))]
    keep = store.insert(_expense())

    new_id = store.replace(old, _income(7000))

    rows = {tx.id: tx for tx in store.list_all()}
    assert set(rows) == {keep, new_id}
    assert rows[new_id].amount == 7000


def test_replace_rolls_back_when_insert_fails(tmp_path):
    store = _store(tmp_path)
    old = store.insert(_income(1000))

    with pytest.raises(ValidationError):
        store.replace([old], _income(-1))

    assert [tx.id for tx in store.list_all()] == [old]


def test_unreadable_database_raises_store_error(tmp_path):
    db_path = tmp_path / "not-a-db.db"
    db_path.write_bytes(b"this is definitely not sqlite" * 100)
    store = SQLiteStore(db_path=db_path)
    with pytest.raises(StoreError):
        store.create_table()


def test_get_store_resolves_dotted_path(tmp_path):
    store = get_store({"db_path": str(tmp_path / "x.db")})
    assert isinstance(store, SQLiteStore)
    assert store.db_path == tmp_path / "x.db"

    memory = get_store({"store": "safespend.store.memory.MemoryStore"})
    assert isinstance(memory, MemoryStore)


@pytest.mark.parametrize(
    "kind, stamp",
    [("refund", "2024-03-02T10:00:00"), ("expense", "yesterday")],
)
def test_unreadable_row_raises_store_error(tmp_path, kind, stamp):
    store = _store(tmp_path)
    store.insert(_expense())
    conn = sqlite3.connect(store.db_path)
    conn.execute(
        "INSERT INTO transactions (title, amount, category, kind, date) VALUES (?, ?, ?, ?, ?)",
        ("Odd", 1.0, "Food", kind, stamp),
    )
    conn.commit()
    conn.close()

    with pytest.raises(StoreError):
        store.list_all()
