"""
Command-line to-do tracker package.

Exposes the record store API so it can be used without going through the
command line:

    from todo_cli import get_settings, open_store
    store = open_store(get_settings())
    todo = store.create("buy milk")
    store.toggle_completion(todo["id"][:4])
"""

__version__ = "0.1.0"

from .errors import (  # noqa: E402
    AmbiguousPrefixError,
    DuplicateIdentifierError,
    InvalidInputError,
    NotFoundError,
    PersistenceError,
    PrefixTooShortError,
    RandomSourceError,
    TodoError,
)
from .identifiers import generate_id  # noqa: E402
from .models import TodoEntity  # noqa: E402
from .repositories import MIN_PREFIX_LENGTH, JSONFileStore, TodoStore, open_store  # noqa: E402
from .schemas import TodoCreate, TodoUpdate  # noqa: E402
from .settings import Settings, get_settings  # noqa: E402

__all__ = [
    "AmbiguousPrefixError",
    "DuplicateIdentifierError",
    "InvalidInputError",
    "JSONFileStore",
    "MIN_PREFIX_LENGTH",
    "NotFoundError",
    "PersistenceError",
    "PrefixTooShortError",
    "RandomSourceError",
    "Settings",
    "TodoCreate",
    "TodoEntity",
    "TodoError",
    "TodoStore",
    "TodoUpdate",
    "generate_id",
    "get_settings",
    "open_store",
]
