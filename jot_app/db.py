"""SQLite database helpers for jot."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .groups import REGISTRY_TABLE, quote_identifier

BUSY_TIMEOUT_SECONDS = 5.0

SCHEMA_STATEMENTS = [
    # Registry of every group that owns a table
    f"""
    CREATE TABLE IF NOT EXISTS {REGISTRY_TABLE} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        group_name TEXT NOT NULL
    )
    """,
]

# created_at uses CURRENT_TIMESTAMP, which SQLite always reports in UTC.
GROUP_TABLE_TEMPLATE = """
    CREATE TABLE IF NOT EXISTS {table} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        note TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""


def connect(location: str, *, timeout: float = BUSY_TIMEOUT_SECONDS) -> sqlite3.Connection:
    """Return a SQLite connection in autocommit mode with row access by name.

    Transactions are opened explicitly with :func:`transaction`.
    """

    uri = location.startswith("file:")
    if not uri and location != ":memory:":
        Path(location).parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(location, uri=uri, timeout=timeout, isolation_level=None)
    connection.row_factory = sqlite3.Row
    return connection


@contextmanager
def transaction(connection: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the enclosed statements atomically, rolling back on any error."""

    connection.execute("BEGIN")
    try:
        yield connection
    except BaseException:
        connection.execute("ROLLBACK")
        raise
    else:
        connection.execute("COMMIT")


def apply_schema(connection: sqlite3.Connection) -> None:
    """Create the registry table if it does not exist."""

    for statement in SCHEMA_STATEMENTS:
        connection.execute(statement)


def create_group_table(connection: sqlite3.Connection, group: str) -> None:
    """Create the table backing ``group``; the name must already be validated."""

    connection.execute(GROUP_TABLE_TEMPLATE.format(table=quote_identifier(group)))


def table_exists(connection: sqlite3.Connection, name: str) -> bool:
    row = connection.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
        (name,),
    ).fetchone()
    return row is not None


def find_table_ignoring_case(connection: sqlite3.Connection, name: str) -> str | None:
    """Return the stored spelling of a table whose name matches ``name`` in any case."""

    row = connection.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=? COLLATE NOCASE",
        (name,),
    ).fetchone()
    return row["name"] if row is not None else None


def registry_has(connection: sqlite3.Connection, group: str) -> bool:
    row = connection.execute(
        f"SELECT group_name FROM {REGISTRY_TABLE} WHERE group_name=?",
        (group,),
    ).fetchone()
    return row is not None


def add_registry_entry(connection: sqlite3.Connection, group: str) -> bool:
    """Insert ``group`` into the registry unless present. Returns True on insert."""

    if registry_has(connection, group):
        return False
    connection.execute(f"INSERT INTO {REGISTRY_TABLE} (group_name) VALUES (?)", (group,))
    return True


__all__ = [
    "SCHEMA_STATEMENTS",
    "GROUP_TABLE_TEMPLATE",
    "connect",
    "transaction",
    "apply_schema",
    "create_group_table",
    "table_exists",
    "find_table_ignoring_case",
    "registry_has",
    "add_registry_entry",
]
