from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .errors import PersistenceError

logger = logging.getLogger(__name__)

BACKENDS = ("json", "sqlite")
APP_DIR_NAME = "todo-cli"


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - TODO_BACKEND: 'json' (default) or 'sqlite'
    - TODO_DATA_DIR: directory holding the data files.
      Default '$XDG_DATA_HOME/todo-cli' or '~/.local/share/todo-cli'
    - TODO_JSON_FILE: file name of the JSON store inside the data dir. Default 'todo.json'
    - TODO_SQLITE_FILE: file name of the SQLite store inside the data dir. Default 'todo.db'
    - TODO_LOG_LEVEL: logging level name. Default 'WARNING'
    """

    backend: str
    data_dir: str
    json_file: str
    sqlite_file: str
    log_level: str

    @property
    def store_path(self) -> str:
        """Path of the file used by the configured backend."""
        name = self.sqlite_file if self.backend == "sqlite" else self.json_file
        return os.path.join(self.data_dir, name)


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _default_data_dir() -> str:
    base = os.getenv("XDG_DATA_HOME") or os.path.join(os.path.expanduser("~"), ".local", "share")
    return os.path.join(base, APP_DIR_NAME)


# PUBLIC_INTERFACE
def normalize_backend(value: str) -> str:
    """Lower-case a backend name, falling back to 'json' if it is not supported."""
    backend = value.strip().lower()
    if backend not in BACKENDS:
        logger.warning("Unsupported backend %r, falling back to 'json'", value)
        return "json"
    return backend


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = normalize_backend(_get_env("TODO_BACKEND", "json"))
    data_dir = os.path.expanduser(_get_env("TODO_DATA_DIR", _default_data_dir()).strip())

    return Settings(
        backend=backend,
        data_dir=data_dir,
        json_file=_get_env("TODO_JSON_FILE", "todo.json").strip(),
        sqlite_file=_get_env("TODO_SQLITE_FILE", "todo.db").strip(),
        log_level=_get_env("TODO_LOG_LEVEL", "WARNING").strip().upper(),
    )


# PUBLIC_INTERFACE
def ensure_data_dir(settings: Settings) -> str:
    """
    Create the data directory (mode 0700) if needed and return its path.

    Raises:
        PersistenceError: the directory could not be created.
    """
    try:
        os.makedirs(settings.data_dir, mode=0o700, exist_ok=True)
    except OSError as e:
        raise PersistenceError(f"cannot create data directory {settings.data_dir}: {e}") from e
    return settings.data_dir
