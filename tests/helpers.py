"""Direct SQLite inspection used to check store invariants from outside."""

import sqlite3


def query(path, sql, params=()):
    connection = sqlite3.connect(str(path))
    try:
        return connection.execute(sql, params).fetchall()
    finally:
        connection.close()


def table_names(path):
    rows = query(path, "SELECT name FROM sqlite_master WHERE type='table' AND name != 'sqlite_sequence'")
    return sorted(row[0] for row in rows)


def registry(path):
    return [row[0] for row in query(path, "SELECT group_name FROM _group_names ORDER BY id")]
