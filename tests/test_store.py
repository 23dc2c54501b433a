import logging
import sqlite3
from datetime import timezone

import pytest

from jot_app import store as store_module
from jot_app.errors import CloseError, InitError, InvalidInput, InvalidName, ReadError, WriteError
from jot_app.store import Store

from tests.helpers import query, registry, table_names


def test_open_bootstraps_registry_and_default_group(store, db_path):
    assert table_names(db_path) == ["_group_names", "general"]
    assert registry(db_path) == ["general"]


def test_reopen_does_not_duplicate_default_group(store, db_path):
    store.close()
    Store.open(str(db_path)).close()
    assert registry(db_path) == ["general"]


def test_open_falls_back_to_configured_location(db_path):
    with Store.open() as store:
        assert store.location == str(db_path)
    assert db_path.exists()


def test_open_creates_missing_parent_directories(tmp_path):
    location = tmp_path / "nested" / "dir" / "notes.db"
    with Store.open(str(location)):
        pass
    assert location.exists()


def test_open_rejects_a_directory(tmp_path):
    with pytest.raises(InitError):
        Store.open(str(tmp_path))


def test_open_rejects_a_corrupt_file(tmp_path):
    location = tmp_path / "broken.db"
    location.write_bytes(b"this is not a sqlite database " * 64)
    with pytest.raises(InitError):
        Store.open(str(location))


def test_write_then_read_returns_text_last(store):
    store.write_note("", "first")
    store.write_note("", "hello world")
    assert store.read_group("")[-1] == "hello world"


def test_read_preserves_write_order(store):
    bodies = [f"note {index}" for index in range(12)]
    for body in bodies:
        store.write_note("ideas", body)
    assert store.read_group("ideas") == bodies


def test_read_notes_returns_ids_and_utc_timestamps(store):
    first = store.write_note("log", "one")
    second = store.write_note("log", "two")

    notes = store.read_notes("log")

    assert [note.id for note in notes] == [first, second]
    assert first < second
    assert all(note.group == "log" for note in notes)
    assert notes[0].created_at is not None
    assert notes[0].created_at.tzinfo is timezone.utc


def test_note_ids_are_per_group(store):
    assert store.write_note("alpha", "a") == 1
    assert store.write_note("beta", "b") == 1


def test_write_to_new_group_creates_table_and_single_registry_entry(store, db_path):
    store.write_note("work", "ship the feature")
    store.write_note("work", "review the PR")

    assert "work" in table_names(db_path)
    assert registry(db_path) == ["general", "work"]
    assert query(db_path, "SELECT note FROM work ORDER BY id") == [("ship the feature",), ("review the PR",)]


def test_duplicate_notes_are_kept(store, db_path):
    store.write_note("todo", "buy milk")
    store.write_note("todo", "buy milk")

    assert store.read_group("todo") == ["buy milk", "buy milk"]
    assert registry(db_path).count("todo") == 1


@pytest.mark.parametrize(
    "name",
    [
        "_admin",
        "_group_names",
        "1st",
        "has-dash",
        "with space",
        "semi;colon",
        'quote"d',
        "x" * 64,
        "sqlite_sequence",
        "SQLITE_master",
        "work; DROP TABLE general; --",
    ],
)
def test_invalid_group_names_leave_state_unchanged(store, db_path, name):
    tables_before = table_names(db_path)

    with pytest.raises(InvalidName):
        store.write_note(name, "hi")

    assert table_names(db_path) == tables_before
    assert registry(db_path) == ["general"]


def test_longest_allowed_group_name(store):
    name = "g" + "0" * 62
    store.write_note(name, "fits")
    assert store.read_group(name) == ["fits"]


def test_group_names_differing_only_in_case_are_rejected(store, db_path):
    store.write_note("work", "lowercase")

    with pytest.raises(InvalidName):
        store.write_note("Work", "capitalised")

    assert registry(db_path) == ["general", "work"]
    assert store.read_group("work") == ["lowercase"]
    assert store.read_group("Work") == []


def test_empty_note_is_rejected(store, db_path):
    with pytest.raises(InvalidInput):
        store.write_note("fresh", "")
    assert "fresh" not in table_names(db_path)


@pytest.mark.parametrize("text", [" ", "   ", "\n", "\n\t"])
def test_whitespace_note_is_kept(store, text):
    store.write_note("", text)
    assert store.read_group("")[-1] == text


def test_undecodable_note_is_rejected(store, db_path):
    with pytest.raises(InvalidInput, match="UTF-8"):
        store.write_note("fresh", "caf\udce9")
    assert "fresh" not in table_names(db_path)


def test_open_rejects_group_table_clashing_with_default(tmp_path):
    location = tmp_path / "legacy.db"
    query(location, "CREATE TABLE General (id INTEGER PRIMARY KEY, note TEXT NOT NULL)")

    with pytest.raises(InitError, match="clashes"):
        Store.open(str(location))


def test_note_body_is_stored_verbatim(store, db_path):
    body = "it's done'); DROP TABLE general; --"
    store.write_note("", body)

    assert store.read_group("") == [body]
    assert "general" in table_names(db_path)


def test_unicode_body_round_trips(store):
    store.write_note("", "café ☕ 日本語")
    assert store.read_group("general") == ["café ☕ 日本語"]


def test_reading_unknown_group_is_empty_and_creates_nothing(store, db_path):
    assert store.read_group("empty") == []
    assert "empty" not in table_names(db_path)
    assert registry(db_path) == ["general"]


def test_read_rejects_reserved_names(store):
    with pytest.raises(InvalidName):
        store.read_group("_group_names")


def test_failed_registration_rolls_back_table_creation(store, db_path, monkeypatch):
    def _fail(connection, group):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(store_module, "add_registry_entry", _fail)

    with pytest.raises(WriteError):
        store.write_note("doomed", "never saved")

    assert "doomed" not in table_names(db_path)
    assert registry(db_path) == ["general"]


def test_writes_survive_reopen(db_path):
    with Store.open(str(db_path)) as first:
        first.write_note("log", "entry-one")

    with Store.open(str(db_path)) as second:
        assert second.read_group("log") == ["entry-one"]
        assert second.list_groups() == ["general", "log"]


def test_group_exists(store):
    store.write_note("work", "x")

    assert store.group_exists("general")
    assert store.group_exists("work")
    assert not store.group_exists("never")
    assert not store.group_exists("_group_names")
    assert not store.group_exists("")


def test_group_exists_is_false_after_close(store):
    store.close()
    assert not store.group_exists("general")


def test_register_group_is_idempotent(store, db_path):
    assert store.register_group("reading") == "reading"
    store.register_group("reading")

    assert registry(db_path) == ["general", "reading"]
    assert store.read_group("reading") == []
    assert store.group_exists("reading")


def test_list_groups_in_registration_order(store):
    store.write_note("zeta", "z")
    store.write_note("alpha", "a")
    assert store.list_groups() == ["general", "zeta", "alpha"]


def test_close_twice_raises(store):
    store.close()
    assert store.closed
    with pytest.raises(CloseError):
        store.close()


def test_operations_after_close_raise(store):
    store.close()
    with pytest.raises(WriteError):
        store.write_note("", "late")
    with pytest.raises(ReadError):
        store.read_group("")
    with pytest.raises(ReadError):
        store.list_groups()


def test_health_reports_up(store):
    stats = store.health()

    assert stats["status"] == "up"
    assert stats["message"] == "It's healthy"
    assert stats["open_connections"] == "1"
    assert stats["in_use"] == "0"
    assert stats["idle"] == "1"
    for key in ("wait_count", "wait_duration", "max_idle_closed", "max_lifetime_closed"):
        assert key in stats


def test_health_reports_down_without_raising(store, caplog):
    store.close()

    with caplog.at_level(logging.ERROR, logger="jot_app.store"):
        stats = store.health()

    assert stats["status"] == "down"
    assert stats["error"].startswith("db down:")
    assert "db down" in caplog.text


def test_memory_database():
    with Store.open(":memory:") as store:
        store.write_note("scratch", "temporary")
        assert store.read_group("scratch") == ["temporary"]
