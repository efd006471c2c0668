from __future__ import annotations

import json
from typing import Iterable, List

from .models import TodoEntity
from .schemas import TodoRecord, TodoRecordList


# PUBLIC_INTERFACE
def format_todo(todo: TodoEntity) -> str:
    """
    Render a todo as a single checklist line.

    Example:
        - [x] (a1b2c3d4e5f6) buy milk
    """
    mark = "x" if todo["is_completed"] else " "
    return f"- [{mark}] ({todo['id']}) {todo['text']}"


# PUBLIC_INTERFACE
def todos_to_json(todos: Iterable[TodoEntity]) -> str:
    """Serialize todos as an indented JSON array, the same shape as the JSON store file."""
    records: List[TodoRecord] = [TodoRecord.from_entity(t) for t in todos]
    return json.dumps(TodoRecordList.dump_python(records, mode="json"), indent=2)
