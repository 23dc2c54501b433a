"""Command-line interface entry point for jot."""

from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence, Tuple

from . import __version__
from .config import get_settings
from .errors import JotError
from .groups import resolve_group
from .logs import configure_logging
from .store import Store

logger = logging.getLogger(__name__)

GROUP_FLAGS = ("-g", "--group")


class UsageError(Exception):
    """Raised for malformed command-line arguments."""


def _print_help() -> None:
    print("jot-me, a quick note taking app.")
    print("\nUsage:")
    print("  jot <command> [arguments]")
    print("\nCommands:")
    print("  note <text...> [-g NAME]  - Write a note (joined with spaces)")
    print("  view [-g NAME]            - Browse a group's notes interactively")
    print("  groups                    - List known groups")
    print("  health                    - Show database diagnostics")
    print("  help                      - Show this help message")
    print("\nFlags:")
    print("  -g, --group NAME          - Group to use (default: general)")
    print("  -v, --version             - Show the version")
    print("\nEnvironment:")
    print("  DB_URL                    - Path to the database file (default: ./jot.db)")
    print("  JOT_LOG_LEVEL             - Log level for diagnostics (default: WARNING)")


def _print_error(message: object) -> None:
    print(f"❌ {message}", file=sys.stderr)


def _extract_option(args: Sequence[str], flags: Sequence[str]) -> Tuple[Optional[str], list[str]]:
    """Pull ``flag VALUE`` / ``--flag=VALUE`` out of ``args``; the last one wins."""

    value: Optional[str] = None
    remaining: list[str] = []
    i = 0
    while i < len(args):
        arg = args[i]
        name, sep, inline_value = arg.partition("=")
        if sep and name.startswith("--") and name in flags:
            value = inline_value
            i += 1
            continue
        if arg in flags:
            if i + 1 >= len(args):
                raise UsageError(f"flag {arg} needs a group name")
            value = args[i + 1]
            i += 2
            continue
        remaining.append(arg)
        i += 1
    return value, remaining


def _open_store() -> Store:
    location = get_settings().database_url
    logger.debug("using database %s", location)
    return Store.open(location)


def _close_store(store: Store) -> int:
    try:
        store.close()
    except JotError as exc:
        _print_error(exc)
        return 1
    return 0


def _handle_note(args: Sequence[str]) -> int:
    group, words = _extract_option(args, GROUP_FLAGS)
    if not words:
        raise UsageError("Usage: jot note <text...> [-g NAME]")

    text = " ".join(words)
    store = _open_store()
    try:
        note_id = store.write_note(group or "", text)
    except JotError as exc:
        _print_error(f"problem writing the note: {exc}")
        _close_store(store)
        return 1

    print(f"✅ Note saved in {resolve_group(group)} (#{note_id})")
    return _close_store(store)


def _handle_view(args: Sequence[str]) -> int:
    group, remaining = _extract_option(args, GROUP_FLAGS)
    if remaining:
        raise UsageError("Usage: jot view [-g NAME]")

    from .viewer import run_viewer

    store = _open_store()
    try:
        result = run_viewer(store, resolve_group(group))
    except JotError as exc:
        _print_error(exc)
        _close_store(store)
        return 1

    if result is not None:
        print(result)
    return _close_store(store)


def _handle_groups(args: Sequence[str]) -> int:
    if args:
        raise UsageError("Usage: jot groups")

    store = _open_store()
    try:
        groups = store.list_groups()
    except JotError as exc:
        _print_error(exc)
        _close_store(store)
        return 1

    for name in groups:
        print(name)
    return _close_store(store)


def _handle_health(args: Sequence[str]) -> int:
    if args:
        raise UsageError("Usage: jot health")

    store = _open_store()
    stats = store.health()
    width = max(len(key) for key in stats)
    for key, value in stats.items():
        print(f"{key:<{width}} : {value}")
    return _close_store(store)


def main(argv: Sequence[str] | None = None) -> int:
    args = list(argv) if argv is not None else sys.argv[1:]

    configure_logging(get_settings().log_level)

    if not args:
        _print_help()
        return 0

    command, *rest = args

    if command in {"help", "-h", "--help"}:
        _print_help()
        return 0

    if command in {"-v", "--version", "version"}:
        print(f"jot version {__version__}")
        return 0

    handlers = {
        "note": _handle_note,
        "view": _handle_view,
        "groups": _handle_groups,
        "health": _handle_health,
    }
    handler = handlers.get(command)
    if handler is None:
        print(f"Unknown command: {command}")
        print("Use 'jot help' to see available commands")
        return 1

    try:
        return handler(rest)
    except UsageError as exc:
        _print_error(exc)
        return 1
    except JotError as exc:
        # Store.open failures land here.
        _print_error(exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
