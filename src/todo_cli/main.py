"""
Command-line entry point for the todo tool.

Usage:
    todo [--backend json|sqlite] [--data-dir DIR] [-v] COMMAND ...

    todo add buy milk
    todo list [--json]
    todo show a1b
    todo edit a1b buy oat milk
    todo toggle a1b
    todo done a1b / todo undone a1b
    todo rm a1b

Running `todo` with no command lists the todos.
"""
from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from typing import Callable, Dict, List, Optional, Union

from . import __version__
from .errors import PersistenceError, RandomSourceError, TodoError
from .logging_config import setup_logging
from .repositories import TodoStore, open_store
from .schemas import parse_update
from .settings import BACKENDS, Settings, get_settings, normalize_backend
from .utils import format_todo, todos_to_json

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_PERSISTENCE = 3
EXIT_RANDOM_SOURCE = 4


def _text(words: List[str]) -> str:
    return " ".join(words)


def cmd_add(store: TodoStore, args: argparse.Namespace) -> int:
    print(format_todo(store.create(_text(args.text))))
    return EXIT_OK


def cmd_list(store: TodoStore, args: argparse.Namespace) -> int:
    todos = store.list()
    if getattr(args, "json", False):
        print(todos_to_json(todos))
        return EXIT_OK
    if not todos:
        print("No to-dos yet.")
        return EXIT_OK
    for todo in todos:
        print(format_todo(todo))
    return EXIT_OK


def cmd_show(store: TodoStore, args: argparse.Namespace) -> int:
    print(format_todo(store.find_by_prefix(args.id)))
    return EXIT_OK


def cmd_edit(store: TodoStore, args: argparse.Namespace) -> int:
    print(format_todo(store.update_text(args.id, _text(args.text))))
    return EXIT_OK


def cmd_toggle(store: TodoStore, args: argparse.Namespace) -> int:
    print(format_todo(store.toggle_completion(args.id)))
    return EXIT_OK


def cmd_done(store: TodoStore, args: argparse.Namespace) -> int:
    patch = parse_update(is_completed=args.completed)
    print(format_todo(store.update(args.id, patch)))
    return EXIT_OK


def cmd_rm(store: TodoStore, args: argparse.Namespace) -> int:
    todo = store.find_by_prefix(args.id)
    store.delete(todo["id"])
    print(f"Deleted ({todo['id']}) {todo['text']}")
    return EXIT_OK


COMMANDS: Dict[str, Callable[[TodoStore, argparse.Namespace], int]] = {
    "add": cmd_add,
    "list": cmd_list,
    "show": cmd_show,
    "edit": cmd_edit,
    "toggle": cmd_toggle,
    "done": cmd_done,
    "undone": cmd_done,
    "rm": cmd_rm,
}


# PUBLIC_INTERFACE
def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the todo command."""
    parser = argparse.ArgumentParser(
        prog="todo",
        description="Track short to-do items from the command line.",
        epilog="IDs can be shortened to any unique prefix of at least 3 characters.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        help="Storage engine (default: $TODO_BACKEND or json)",
    )
    parser.add_argument("--data-dir", help="Data directory (default: $TODO_DATA_DIR)")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Log more (-v info, -vv debug)"
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p_add = sub.add_parser("add", help="Create a to-do")
    p_add.add_argument("text", nargs="+", help="Text of the to-do")

    p_list = sub.add_parser("list", aliases=["ls"], help="List to-dos")
    p_list.add_argument("--json", action="store_true", help="Print as a JSON array")

    p_show = sub.add_parser("show", help="Show one to-do")
    p_show.add_argument("id", help="ID or unique ID prefix")

    p_edit = sub.add_parser("edit", help="Replace the text of a to-do")
    p_edit.add_argument("id", help="ID or unique ID prefix")
    p_edit.add_argument("text", nargs="+", help="New text")

    p_toggle = sub.add_parser("toggle", help="Flip the completion state of a to-do")
    p_toggle.add_argument("id", help="ID or unique ID prefix")

    p_done = sub.add_parser("done", help="Mark a to-do as completed")
    p_done.add_argument("id", help="ID or unique ID prefix")
    p_done.set_defaults(completed=True)

    p_undone = sub.add_parser("undone", help="Mark a to-do as not completed")
    p_undone.add_argument("id", help="ID or unique ID prefix")
    p_undone.set_defaults(completed=False)

    p_rm = sub.add_parser("rm", aliases=["delete"], help="Delete a to-do")
    p_rm.add_argument("id", help="ID or unique ID prefix")

    return parser


def _resolve_settings(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    overrides = {}
    if args.backend:
        overrides["backend"] = normalize_backend(args.backend)
    if args.data_dir:
        overrides["data_dir"] = args.data_dir
    return dataclasses.replace(settings, **overrides) if overrides else settings


def _log_level(settings: Settings, verbose: int) -> Union[int, str]:
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return settings.log_level


_ALIASES = {"ls": "list", "delete": "rm"}


# PUBLIC_INTERFACE
def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the todo command and return its exit code.

    Exit codes:
    - 0 success
    - 1 invalid input, unknown/ambiguous/too short id
    - 2 usage error (raised by argparse as SystemExit)
    - 3 storage could not be read or written
    - 4 no random source to mint ids
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = _resolve_settings(args)
    setup_logging(_log_level(settings, args.verbose))

    command = _ALIASES.get(args.command, args.command) or "list"
    handler = COMMANDS[command]

    try:
        store = open_store(settings)
        logger.debug("Using %s store at %s", settings.backend, store.path)
        return handler(store, args)
    except RandomSourceError as e:
        logger.error("Random source unavailable: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_RANDOM_SOURCE
    except PersistenceError as e:
        logger.warning("Storage failure: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_PERSISTENCE
    except TodoError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
