"""Note storage for jot: one SQLite table per group plus a group registry."""

from __future__ import annotations

import logging
import sqlite3
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Type

from .config import get_settings
from .db import (
    add_registry_entry,
    apply_schema,
    connect,
    create_group_table,
    find_table_ignoring_case,
    table_exists,
    transaction,
)
from .errors import CloseError, InitError, InvalidInput, InvalidName, JotError, ReadError, WriteError
from .groups import DEFAULT_GROUP, REGISTRY_TABLE, is_valid_group_name, quote_identifier, validate_group_name

logger = logging.getLogger(__name__)

HEALTH_TIMEOUT_SECONDS = 1.0
# SQLite VM instructions between deadline checks during the health probe.
HEALTH_PROGRESS_STEPS = 1000


@dataclass(frozen=True)
class Note:
    """A single stored note."""

    id: int
    body: str
    group: str
    created_at: Optional[datetime] = None


def _parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


class Store:
    """Owns the database handle and keeps group tables and the registry in step.

    Every group table has exactly one registry entry and every registry entry
    names an existing table. Table creation, registration and the note insert
    share one transaction, so a failure part-way leaves neither behind.
    """

    def __init__(self, connection: sqlite3.Connection, location: str) -> None:
        self._connection: Optional[sqlite3.Connection] = connection
        self.location = location

    # ------------------------------------------------------------------
    @classmethod
    def open(cls, location: Optional[str] = None) -> "Store":
        """Open or create the database at ``location`` and bootstrap its schema."""

        location = location or get_settings().database_url
        logger.debug("initializing db at %s", location)
        try:
            connection = connect(location)
        except (sqlite3.Error, OSError) as exc:
            raise InitError(f"could not open the database at {location}: {exc}") from exc

        store = cls(connection, location)
        try:
            with transaction(connection):
                apply_schema(connection)
                store._ensure_group(connection, DEFAULT_GROUP)
        except (sqlite3.Error, JotError) as exc:
            connection.close()
            raise InitError(f"could not initialize the database at {location}: {exc}") from exc
        return store

    def close(self) -> None:
        """Release the database handle. Call at most once."""

        if self._connection is None:
            raise CloseError("the store is already closed")
        try:
            self._connection.close()
        except sqlite3.Error as exc:
            raise CloseError(f"could not close the database: {exc}") from exc
        self._connection = None
        logger.debug("closed db at %s", self.location)

    @property
    def closed(self) -> bool:
        return self._connection is None

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._connection is not None:
            self.close()

    def _require_open(self, error_cls: Type[JotError]) -> sqlite3.Connection:
        if self._connection is None:
            raise error_cls("the store is closed")
        return self._connection

    # ------------------------------------------------------------------
    def _ensure_group(self, connection: sqlite3.Connection, group: str) -> None:
        # Table first, then registry: a failed CREATE never leaves an entry behind.
        if not table_exists(connection, group):
            # SQLite table names ignore case, so "Work" would land in "work".
            existing = find_table_ignoring_case(connection, group)
            if existing is not None:
                raise InvalidName(f"group {group!r} clashes with existing group {existing!r}")
            logger.info("creating new table: %s", group)
        create_group_table(connection, group)
        if add_registry_entry(connection, group):
            logger.info("registered group: %s", group)

    def register_group(self, name: str) -> str:
        """Make sure ``name`` has both a table and a registry entry."""

        group = validate_group_name(name)
        connection = self._require_open(WriteError)
        try:
            with transaction(connection):
                self._ensure_group(connection, group)
        except sqlite3.Error as exc:
            raise WriteError(f"could not register the group {group}: {exc}") from exc
        return group

    def write_note(self, group: str, text: str) -> int:
        """Insert ``text`` into ``group`` (default ``general``) and return its id."""

        group = validate_group_name(group)
        if not text:
            raise InvalidInput("note text cannot be empty")
        try:
            text.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise InvalidInput(f"note text is not valid UTF-8: {exc}") from exc

        connection = self._require_open(WriteError)
        try:
            with transaction(connection):
                self._ensure_group(connection, group)
                cursor = connection.execute(
                    f"INSERT INTO {quote_identifier(group)} (note) VALUES (?)",
                    (text,),
                )
        except sqlite3.Error as exc:
            raise WriteError(f"could not save the note in the group {group}: {exc}") from exc

        logger.debug("saved note %s in %s", cursor.lastrowid, group)
        return int(cursor.lastrowid)

    def read_notes(self, group: str) -> List[Note]:
        """Return the notes of ``group`` oldest first; a missing group reads as empty."""

        group = validate_group_name(group)
        connection = self._require_open(ReadError)
        try:
            if not table_exists(connection, group):
                return []
            rows = connection.execute(
                f"SELECT id, note, created_at FROM {quote_identifier(group)} ORDER BY id ASC"
            ).fetchall()
        except sqlite3.Error as exc:
            raise ReadError(f"could not read the notes from the group {group}: {exc}") from exc

        return [
            Note(
                id=int(row["id"]),
                body=row["note"],
                group=group,
                created_at=_parse_timestamp(row["created_at"]),
            )
            for row in rows
        ]

    def read_group(self, group: str) -> List[str]:
        """Return the note bodies of ``group`` in creation order."""

        return [note.body for note in self.read_notes(group)]

    def group_exists(self, name: str) -> bool:
        if not is_valid_group_name(name) or self._connection is None:
            return False
        try:
            return table_exists(self._connection, name)
        except sqlite3.Error as exc:
            logger.debug("group lookup for %s failed: %s", name, exc)
            return False

    def list_groups(self) -> List[str]:
        """Return registered group names in registration order."""

        connection = self._require_open(ReadError)
        try:
            rows = connection.execute(
                f"SELECT group_name FROM {REGISTRY_TABLE} GROUP BY group_name ORDER BY MIN(id)"
            ).fetchall()
        except sqlite3.Error as exc:
            raise ReadError(f"could not list the groups: {exc}") from exc
        return [row["group_name"] for row in rows]

    # ------------------------------------------------------------------
    def _ping(self, connection: sqlite3.Connection) -> None:
        deadline = time.monotonic() + HEALTH_TIMEOUT_SECONDS

        def _past_deadline() -> int:
            return 1 if time.monotonic() > deadline else 0

        connection.set_progress_handler(_past_deadline, HEALTH_PROGRESS_STEPS)
        try:
            connection.execute("SELECT 1").fetchone()
        finally:
            connection.set_progress_handler(None, 0)

    def health(self) -> Dict[str, str]:
        """Return a snapshot of the database status for diagnostics.

        A failed probe is reported in the snapshot and logged; it never raises.
        """

        stats: Dict[str, str] = {}
        try:
            connection = self._require_open(ReadError)
            self._ping(connection)
        except (JotError, sqlite3.Error) as exc:
            stats["status"] = "down"
            stats["error"] = f"db down: {exc}"
            logger.error("db down: %s", exc)
            return stats

        in_use = 1 if connection.in_transaction else 0
        stats["status"] = "up"
        stats["message"] = "It's healthy"
        stats["open_connections"] = "1"
        stats["in_use"] = str(in_use)
        stats["idle"] = str(1 - in_use)
        # A single connection is owned by this process, so nothing ever waits
        # for or recycles a connection.
        stats["wait_count"] = "0"
        stats["wait_duration"] = "0s"
        stats["max_idle_closed"] = "0"
        stats["max_lifetime_closed"] = "0"
        return stats


__all__ = ["Note", "Store", "HEALTH_TIMEOUT_SECONDS"]
