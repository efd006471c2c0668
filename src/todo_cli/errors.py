from __future__ import annotations

from typing import Sequence


# PUBLIC_INTERFACE
class TodoError(Exception):
    """Base class for every failure reported by the todo store."""


class InvalidInputError(TodoError, ValueError):
    """Text supplied for a todo was empty, whitespace-only or not valid UTF-8."""


class NotFoundError(TodoError, LookupError):
    """No active todo matches the given id or prefix."""

    def __init__(self, prefix: str) -> None:
        super().__init__(f"no to-do found matching '{prefix}'")
        self.prefix = prefix


class AmbiguousPrefixError(TodoError, LookupError):
    """
    More than one active todo matches the prefix.

    The store never picks one of the candidates; the caller has to supply a
    longer prefix. The matching ids are kept on the exception so the CLI can
    show them.
    """

    def __init__(self, prefix: str, matches: Sequence[str]) -> None:
        super().__init__(
            f"prefix '{prefix}' is ambiguous, it matches {len(matches)} to-dos: "
            + ", ".join(matches)
        )
        self.prefix = prefix
        self.matches = list(matches)


class PrefixTooShortError(TodoError, ValueError):
    """Prefix is shorter than the minimum accepted length."""

    def __init__(self, prefix: str, min_length: int) -> None:
        super().__init__(
            f"prefix '{prefix}' is too short, use at least {min_length} characters"
        )
        self.prefix = prefix
        self.min_length = min_length


class DuplicateIdentifierError(TodoError):
    """A freshly minted id collided with an existing record."""

    def __init__(self, todo_id: str) -> None:
        super().__init__(f"to-do id '{todo_id}' already exists")
        self.todo_id = todo_id


class PersistenceError(TodoError):
    """Reading or writing the backing storage failed."""


class RandomSourceError(TodoError):
    """The operating system entropy source is unavailable."""
