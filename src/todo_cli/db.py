from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Generator, List, Optional

from .errors import DuplicateIdentifierError, PersistenceError, TodoError
from .models import TodoEntity
from .repositories import Mutation, TodoStore, select_single


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    text: str = "text"
    is_completed: str = "is_completed"
    created_at: str = "created_at"
    updated_at: str = "updated_at"
    deleted_at: str = "deleted_at"


_COLS = _Cols()

_ACTIVE = f"{_COLS.deleted_at} IS NULL"


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLiteStore(TodoStore):
    """
    SQLite-backed store, one row per todo keyed by id.

    Deletes are soft: the row keeps its id and gets deleted_at set, and every
    query skips such rows. Each public operation runs in one transaction.
    """

    def __init__(self, db_path: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self._db_path = db_path
        self._init_db()

    @property
    def path(self) -> str:
        return self._db_path

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"cannot open {self._db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except TodoError:
            conn.rollback()
            raise
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(f"database error in {self._db_path}: {e}") from e
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} TEXT PRIMARY KEY,
                    {_COLS.text} TEXT NOT NULL,
                    {_COLS.is_completed} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL,
                    {_COLS.deleted_at} TEXT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_deleted_at ON {_COLS.table}({_COLS.deleted_at})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        def parse_dt(s: Optional[str]) -> Optional[datetime]:
            if s is None:
                return None
            return datetime.fromisoformat(s)

        return {
            "id": str(row[_COLS.id]),
            "text": str(row[_COLS.text]),
            "is_completed": bool(row[_COLS.is_completed]),
            "created_at": parse_dt(row[_COLS.created_at]),  # type: ignore
            "updated_at": parse_dt(row[_COLS.updated_at]),  # type: ignore
            "deleted_at": parse_dt(row[_COLS.deleted_at]),
        }

    def _select_prefix(self, conn: sqlite3.Connection, prefix: str) -> List[TodoEntity]:
        rows = conn.execute(
            f"""
            SELECT * FROM {_COLS.table}
            WHERE {_COLS.id} LIKE ? ESCAPE '\\' AND {_ACTIVE}
            ORDER BY rowid
            """,
            (_escape_like(prefix) + "%",),
        ).fetchall()
        # LIKE is case-insensitive for ASCII; ids are compared exactly here.
        return [self._row_to_entity(r) for r in rows if str(r[_COLS.id]).startswith(prefix)]

    def _insert(self, entity: TodoEntity) -> None:
        with self._conn() as conn:
            try:
                conn.execute(
                    f"""
                    INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.text}, {_COLS.is_completed},
                        {_COLS.created_at}, {_COLS.updated_at}, {_COLS.deleted_at})
                    VALUES (?, ?, ?, ?, ?, NULL)
                    """,
                    (
                        entity["id"],
                        entity["text"],
                        1 if entity["is_completed"] else 0,
                        entity["created_at"].isoformat(),
                        entity["updated_at"].isoformat(),
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateIdentifierError(entity["id"]) from e

    def _all(self) -> List[TodoEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} WHERE {_ACTIVE} ORDER BY rowid"
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def _match_prefix(self, prefix: str) -> List[TodoEntity]:
        with self._conn() as conn:
            return self._select_prefix(conn, prefix)

    def _modify(self, prefix: str, mutate: Mutation) -> TodoEntity:
        with self._conn() as conn:
            current = select_single(prefix, self._select_prefix(conn, prefix))
            updated = mutate(current)
            conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.text} = ?, {_COLS.is_completed} = ?, {_COLS.updated_at} = ?
                WHERE {_COLS.id} = ? AND {_ACTIVE}
                """,
                (
                    updated["text"],
                    1 if updated["is_completed"] else 0,
                    updated["updated_at"].isoformat(),
                    current["id"],
                ),
            )
            return updated

    def _remove(self, prefix: str) -> TodoEntity:
        with self._conn() as conn:
            current = select_single(prefix, self._select_prefix(conn, prefix))
            now = self._now()
            conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.deleted_at} = ?, {_COLS.updated_at} = ?
                WHERE {_COLS.id} = ?
                """,
                (now.isoformat(), now.isoformat(), current["id"]),
            )
            removed = current.copy()
            removed["deleted_at"] = now
            return removed
