import json
import os

import pytest

from conftest import fixed_ids
from todo_cli.errors import PersistenceError
from todo_cli.repositories import JSONFileStore


@pytest.fixture
def path(tmp_path):
    return str(tmp_path / "todo.json")


def read_file(path):
    with open(path, "rb") as f:
        return f.read()


class TestFileFormat:
    def test_missing_and_empty_file_mean_no_todos(self, path):
        store = JSONFileStore(path)
        assert store.list() == []
        with open(path, "w") as f:
            f.write("  \n")
        assert store.list() == []

    def test_file_is_array_of_records(self, path):
        store = JSONFileStore(path, id_generator=fixed_ids("a1b2c3d4e5f6"))
        store.create("buy milk")

        data = json.loads(read_file(path))
        assert isinstance(data, list) and len(data) == 1
        record = data[0]
        assert record["id"] == "a1b2c3d4e5f6"
        assert record["text"] == "buy milk"
        assert record["is_completed"] is False
        assert set(record) == {"id", "text", "is_completed", "created_at", "updated_at"}

    def test_legacy_date_field_is_accepted(self, path):
        legacy = [
            {"id": "0a0b0c0d0e0f", "text": "old one", "is_completed": True, "date": "2024-05-01T08:30:00"}
        ]
        with open(path, "w") as f:
            json.dump(legacy, f)

        store = JSONFileStore(path)
        todo = store.find_by_prefix("0a0b")
        assert todo["text"] == "old one"
        assert todo["is_completed"] is True
        assert todo["created_at"] == todo["updated_at"]

        # Rewriting upgrades the file to the current field names
        store.toggle_completion("0a0b")
        record = json.loads(read_file(path))[0]
        assert "created_at" in record and "date" not in record

    @pytest.mark.parametrize("content", ["{not json", '{"id": "x"}', '[{"text": "no id"}]'])
    def test_malformed_file_raises_persistence_error(self, path, content):
        with open(path, "w") as f:
            f.write(content)
        with pytest.raises(PersistenceError):
            JSONFileStore(path).list()

    def test_delete_is_hard_removal(self, path):
        store = JSONFileStore(path)
        todo = store.create("buy milk")
        store.delete(todo["id"])
        assert json.loads(read_file(path)) == []


class TestWriteFailures:
    def test_failed_write_keeps_previous_file(self, path, monkeypatch):
        store = JSONFileStore(path)
        todo = store.create("buy milk")
        before = read_file(path)

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", broken_replace)

        with pytest.raises(PersistenceError):
            store.create("buy bread")
        with pytest.raises(PersistenceError):
            store.update_text(todo["id"], "buy oat milk")
        with pytest.raises(PersistenceError):
            store.toggle_completion(todo["id"])
        with pytest.raises(PersistenceError):
            store.delete(todo["id"])

        assert read_file(path) == before
        # No temporary files are left behind
        assert os.listdir(os.path.dirname(path)) == ["todo.json"]

        monkeypatch.undo()
        listed = store.list()
        assert [(t["text"], t["is_completed"]) for t in listed] == [("buy milk", False)]

    def test_unwritable_directory(self, tmp_path):
        store = JSONFileStore(str(tmp_path / "missing" / "todo.json"))
        with pytest.raises(PersistenceError):
            store.create("buy milk")
