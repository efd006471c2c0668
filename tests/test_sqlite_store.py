import sqlite3

import pytest

from conftest import fixed_ids
from todo_cli.db import SQLiteStore
from todo_cli.errors import DuplicateIdentifierError, NotFoundError, PersistenceError


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "todo.db")


def fetch_rows(db_path):
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        return [dict(r) for r in conn.execute("SELECT * FROM todos ORDER BY rowid")]
    finally:
        conn.close()


class TestSchema:
    def test_table_columns(self, db_path):
        SQLiteStore(db_path)
        conn = sqlite3.connect(db_path)
        try:
            cols = [row[1] for row in conn.execute("PRAGMA table_info(todos)")]
        finally:
            conn.close()
        assert cols == ["id", "text", "is_completed", "created_at", "updated_at", "deleted_at"]

    def test_rows_store_iso_timestamps(self, db_path):
        store = SQLiteStore(db_path, id_generator=fixed_ids("a1b2c3d4e5f6"))
        todo = store.create("buy milk")
        row = fetch_rows(db_path)[0]
        assert row["id"] == "a1b2c3d4e5f6"
        assert row["is_completed"] == 0
        assert row["created_at"] == todo["created_at"].isoformat()
        assert row["deleted_at"] is None

    def test_unopenable_database(self, tmp_path):
        # A directory cannot be opened as a database file
        with pytest.raises(PersistenceError):
            SQLiteStore(str(tmp_path))


class TestSoftDelete:
    def test_delete_sets_tombstone(self, db_path):
        store = SQLiteStore(db_path)
        todo = store.create("buy milk")
        store.delete(todo["id"][:4])

        rows = fetch_rows(db_path)
        assert len(rows) == 1
        assert rows[0]["id"] == todo["id"]
        assert rows[0]["deleted_at"] is not None
        assert store.list() == []
        with pytest.raises(NotFoundError):
            store.find_by_prefix(todo["id"])

    def test_tombstoned_id_is_never_reused(self, db_path):
        store = SQLiteStore(db_path, id_generator=fixed_ids("abc123abc123", "abc123abc123"))
        store.create("buy milk")
        store.delete("abc123")
        with pytest.raises(DuplicateIdentifierError):
            store.create("buy bread")
        assert len(fetch_rows(db_path)) == 1


class TestTransactions:
    def test_failed_update_rolls_back(self, db_path, monkeypatch):
        store = SQLiteStore(db_path)
        todo = store.create("buy milk")

        def broken(current):
            raise sqlite3.OperationalError("database is locked")

        with pytest.raises(PersistenceError):
            store._modify(todo["id"], broken)
        assert store.list()[0]["text"] == "buy milk"

    def test_list_orders_by_insertion(self, db_path):
        # Ids sort differently from insertion order
        store = SQLiteStore(db_path, id_generator=fixed_ids("fff000000000", "000fff000000", "aaa000000000"))
        for text in ["one", "two", "three"]:
            store.create(text)
        assert [t["text"] for t in store.list()] == ["one", "two", "three"]
