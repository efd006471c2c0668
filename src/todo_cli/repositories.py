from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from pydantic import ValidationError

from .errors import (
    AmbiguousPrefixError,
    DuplicateIdentifierError,
    NotFoundError,
    PersistenceError,
    PrefixTooShortError,
)
from .identifiers import generate_id
from .models import TodoEntity
from .schemas import TodoRecord, TodoRecordList, TodoUpdate, parse_create, parse_update
from .settings import Settings, ensure_data_dir

logger = logging.getLogger(__name__)

# Shorter prefixes would match large parts of the table.
MIN_PREFIX_LENGTH = 3

Mutation = Callable[[TodoEntity], TodoEntity]


def normalize_prefix(prefix: str, min_length: int = MIN_PREFIX_LENGTH) -> str:
    """
    Strip and lower-case a user supplied id or prefix.

    Raises:
        PrefixTooShortError: fewer than min_length characters remain.
        NotFoundError: the prefix has non-ASCII characters, so no hex id can match.
    """
    p = (prefix or "").strip().lower()
    if len(p) < min_length:
        raise PrefixTooShortError(p, min_length)
    if not p.isascii():
        raise NotFoundError(p)
    return p


def select_single(prefix: str, matches: Sequence[TodoEntity]) -> TodoEntity:
    """Return the only match, or raise NotFoundError / AmbiguousPrefixError."""
    if not matches:
        raise NotFoundError(prefix)
    if len(matches) > 1:
        raise AmbiguousPrefixError(prefix, [m["id"] for m in matches])
    return matches[0]


def apply_update(current: TodoEntity, patch: TodoUpdate, now: datetime) -> TodoEntity:
    """Return a copy of current with the explicitly set patch fields applied."""
    updated = current.copy()
    if "text" in patch.model_fields_set and patch.text is not None:
        updated["text"] = patch.text
    if "is_completed" in patch.model_fields_set and patch.is_completed is not None:
        updated["is_completed"] = patch.is_completed
    updated["updated_at"] = now
    return updated


# PUBLIC_INTERFACE
class TodoStore(ABC):
    """
    Contract and shared semantics of every todo storage engine.

    Engines implement the underscore primitives; each primitive is one
    complete read-modify-write against the backing medium, so a failing call
    leaves the durable state as it was.
    """

    def __init__(
        self,
        id_generator: Callable[[], str] = generate_id,
        min_prefix_length: int = MIN_PREFIX_LENGTH,
    ) -> None:
        self._generate_id = id_generator
        self.min_prefix_length = min_prefix_length

    def _now(self) -> datetime:
        return datetime.now()

    @property
    @abstractmethod
    def path(self) -> str:
        """Location of the backing file."""

    # Engine primitives

    @abstractmethod
    def _insert(self, entity: TodoEntity) -> None:
        """Durably add entity; raise DuplicateIdentifierError if its id exists."""

    @abstractmethod
    def _all(self) -> List[TodoEntity]:
        """Return all active records in creation order."""

    @abstractmethod
    def _match_prefix(self, prefix: str) -> List[TodoEntity]:
        """Return all active records whose id starts with prefix."""

    @abstractmethod
    def _modify(self, prefix: str, mutate: Mutation) -> TodoEntity:
        """Resolve prefix to one record, store mutate(record) and return it."""

    @abstractmethod
    def _remove(self, prefix: str) -> TodoEntity:
        """Resolve prefix to one record and durably delete it."""

    # Public operations

    def create(self, text: str) -> TodoEntity:
        """
        Create and return a new todo.

        Raises:
            InvalidInputError: text is empty, whitespace-only or not valid UTF-8.
            RandomSourceError: no id could be generated.
            DuplicateIdentifierError: the generated id already exists.
            PersistenceError: the write failed.
        """
        data = parse_create(text)
        now = self._now()
        entity: TodoEntity = {
            "id": self._generate_id(),
            "text": data.text,
            "is_completed": False,
            "created_at": now,
            "updated_at": now,
            "deleted_at": None,
        }
        self._insert(entity)
        logger.info("To-do %s created", entity["id"])
        return entity.copy()

    def list(self) -> List[TodoEntity]:
        """
        Return all active todos in creation order.
        An empty store yields an empty list.
        """
        return [t.copy() for t in self._all()]

    def find_by_prefix(self, prefix: str) -> TodoEntity:
        """
        Return the single active todo whose id starts with prefix.

        A full id is just a prefix with exactly one match.

        Raises:
            PrefixTooShortError, NotFoundError, AmbiguousPrefixError
        """
        p = normalize_prefix(prefix, self.min_prefix_length)
        found = select_single(p, self._match_prefix(p))
        logger.debug("Prefix %s resolved to %s", p, found["id"])
        return found.copy()

    def update(self, id_or_prefix: str, patch: TodoUpdate) -> TodoEntity:
        """Apply a patch to the todo identified by id_or_prefix and return it."""
        p = normalize_prefix(id_or_prefix, self.min_prefix_length)
        now = self._now()
        updated = self._modify(p, lambda current: apply_update(current, patch, now))
        logger.info("To-do %s updated", updated["id"])
        return updated.copy()

    def update_text(self, id_or_prefix: str, new_text: str) -> TodoEntity:
        """
        Replace the text of a todo.

        new_text is validated before the lookup, so an empty text fails with
        InvalidInputError whatever the prefix.
        """
        return self.update(id_or_prefix, parse_update(text=new_text))

    def toggle_completion(self, id_or_prefix: str) -> TodoEntity:
        """Flip is_completed of a todo and return it."""
        p = normalize_prefix(id_or_prefix, self.min_prefix_length)
        now = self._now()

        def flip(current: TodoEntity) -> TodoEntity:
            patch = TodoUpdate(is_completed=not current["is_completed"])
            return apply_update(current, patch, now)

        updated = self._modify(p, flip)
        logger.info("To-do %s toggled", updated["id"])
        return updated.copy()

    def delete(self, id_or_prefix: str) -> None:
        """
        Delete a todo. Deleted todos are gone for every later operation.

        Raises:
            PrefixTooShortError, NotFoundError, AmbiguousPrefixError, PersistenceError
        """
        p = normalize_prefix(id_or_prefix, self.min_prefix_length)
        removed = self._remove(p)
        logger.info("To-do %s deleted", removed["id"])


class JSONFileStore(TodoStore):
    """
    Store keeping the whole collection in one JSON file.

    Every mutation reads the file, changes the list and rewrites the file
    through a temporary file and os.replace. Deletes are hard removals.
    """

    def __init__(self, path: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def _read(self) -> List[TodoEntity]:
        try:
            with open(self._path, "rb") as f:
                data = f.read()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise PersistenceError(f"cannot read {self._path}: {e}") from e

        if not data.strip():
            return []
        try:
            records = TodoRecordList.validate_json(data)
        except ValidationError as e:
            raise PersistenceError(f"malformed to-do file {self._path}: {e}") from e
        return [r.to_entity() for r in records]

    def _write(self, todos: List[TodoEntity]) -> None:
        records = [TodoRecord.from_entity(t) for t in todos]
        payload = json.dumps(TodoRecordList.dump_python(records, mode="json"), indent=1)

        directory = os.path.dirname(self._path) or "."
        tmp_path: Optional[str] = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".todo-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
            tmp_path = None
        except OSError as e:
            raise PersistenceError(f"cannot write {self._path}: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def _insert(self, entity: TodoEntity) -> None:
        todos = self._read()
        if any(t["id"] == entity["id"] for t in todos):
            raise DuplicateIdentifierError(entity["id"])
        todos.append(entity)
        self._write(todos)

    def _all(self) -> List[TodoEntity]:
        return self._read()

    def _match_prefix(self, prefix: str) -> List[TodoEntity]:
        return [t for t in self._read() if t["id"].startswith(prefix)]

    def _locate(self, todos: List[TodoEntity], prefix: str) -> int:
        matches = [t for t in todos if t["id"].startswith(prefix)]
        target = select_single(prefix, matches)
        return next(i for i, t in enumerate(todos) if t["id"] == target["id"])

    def _modify(self, prefix: str, mutate: Mutation) -> TodoEntity:
        todos = self._read()
        i = self._locate(todos, prefix)
        updated = mutate(todos[i])
        todos[i] = updated
        self._write(todos)
        return updated

    def _remove(self, prefix: str) -> TodoEntity:
        todos = self._read()
        i = self._locate(todos, prefix)
        removed = todos.pop(i)
        self._write(todos)
        return removed


# PUBLIC_INTERFACE
def open_store(settings: Settings, **kwargs) -> TodoStore:
    """
    Factory returning the store configured by settings.
    - json: JSONFileStore
    - sqlite: SQLiteStore

    The data directory is created first. Extra keyword arguments are passed
    to the store constructor.
    """
    ensure_data_dir(settings)
    if settings.backend == "sqlite":
        from .db import SQLiteStore

        return SQLiteStore(settings.store_path, **kwargs)
    return JSONFileStore(settings.store_path, **kwargs)
