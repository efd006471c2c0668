import logging
import os

import pytest

from todo_cli.db import SQLiteStore
from todo_cli.repositories import JSONFileStore

BACKENDS = ["json", "sqlite"]


def make_store(directory, backend, **kwargs):
    """Build a store of the given backend inside directory."""
    if backend == "sqlite":
        return SQLiteStore(os.path.join(str(directory), "todo.db"), **kwargs)
    return JSONFileStore(os.path.join(str(directory), "todo.json"), **kwargs)


def fixed_ids(*ids):
    """Id generator handing out the given ids in order."""
    it = iter(ids)
    return lambda: next(it)


@pytest.fixture(params=BACKENDS)
def backend(request):
    return request.param


@pytest.fixture
def store(tmp_path, backend):
    return make_store(tmp_path, backend)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    # Never touch the real ~/.local/share during tests
    for name in ("TODO_BACKEND", "TODO_JSON_FILE", "TODO_SQLITE_FILE", "TODO_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TODO_DATA_DIR", str(tmp_path / "data"))


@pytest.fixture(autouse=True)
def restore_package_logger():
    # The CLI reconfigures the package logger; put it back after each test
    package_logger = logging.getLogger("todo_cli")
    handlers = package_logger.handlers[:]
    level = package_logger.level
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
