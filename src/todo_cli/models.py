from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A single persisted todo record as handed out by the store.

    Fields:
    - id: 12-character lowercase hex identifier, never reassigned
    - text: Free-form text (non-empty, trimmed on input via schemas)
    - is_completed: Boolean completion flag
    - created_at: Local creation timestamp (datetime)
    - updated_at: Local last update timestamp (datetime)
    - deleted_at: Tombstone marker; always None for records returned by the store

    Stores return copies, so mutating one of these never touches stored state.
    """

    id: str
    text: str
    is_completed: bool
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime]
