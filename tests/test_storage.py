"""
Tests for clipstash.storage.

Tests cover:
- Opening: directory creation, schema, pragmas, idempotence
- Insert / get_by_id / last_content round trips
- Ordering and limits of list_recent and search
- clear() counts, id monotonicity afterwards
- Lock contention between independent connections
"""

import sqlite3
import threading
import time
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError
from sqlite_utils import Database

from clipstash.database import DatabaseSessionGenerator
from clipstash.models import HistoryEntry
from clipstash.storage import Storage, StorageBusyError, StorageError

# region Open


class TestOpen:
    def test_creates_parent_directories(self, db_path):
        assert not db_path.parent.exists()
        with Storage.open(db_path):
            pass
        assert db_path.parent.is_dir()
        assert db_path.exists()

    def test_creates_history_table(self, storage, db_path):
        db = Database(db_path)
        assert "history" in db.table_names()
        table = db["history"]
        assert [c.name for c in table.columns] == ["id", "content", "created_at"]
        assert table.pks == ["id"]
        assert "AUTOINCREMENT" in table.schema.upper()

    def test_open_is_idempotent(self, db_path):
        with Storage.open(db_path) as first:
            first.insert("kept", None)
        with Storage.open(db_path) as second:
            assert second.last_content() == "kept"
            assert second.count() == 1

    def test_wal_journal_mode(self, storage, db_path):
        conn = sqlite3.connect(db_path)
        try:
            assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
        finally:
            conn.close()

    def test_path_property(self, storage, db_path):
        assert storage.path == db_path

    def test_schema_failure_raises_storage_error(self, tmp_path):
        bogus = tmp_path / "not_a_db.db"
        bogus.write_bytes(b"this is definitely not a sqlite database file" * 100)
        with pytest.raises(StorageError):
            Storage.open(bogus)


# endregion
# region Insert and lookups


class TestInsert:
    def test_round_trip_is_exact(self, storage):
        content = "  hello\n\tworld  "
        entry_id = storage.insert(content)
        assert storage.get_by_id(entry_id) == content

    def test_round_trip_unicode(self, storage):
        entry_id = storage.insert("héllo 👋")
        assert storage.get_by_id(entry_id) == "héllo 👋"

    def test_ids_increase(self, storage):
        ids = [storage.insert(f"item {i}") for i in range(5)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 5

    def test_rejects_empty_content(self, storage):
        with pytest.raises(ValueError):
            storage.insert("")
        assert storage.count() == 0

    def test_unencodable_text_is_storage_error(self, storage):
        with pytest.raises(StorageError):
            storage.insert("bad \ud800 text")
        assert storage.insert("next") > 0
        assert storage.last_content() == "next"

    def test_unencodable_search_term_is_storage_error(self, storage):
        with pytest.raises(StorageError):
            storage.search("\udcff", 20)

    def test_stores_given_timestamp(self, storage):
        ts = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        storage.insert("stamped", ts)
        [entry] = storage.list_recent(1)
        assert entry.created_at == ts

    def test_offset_timestamp_is_stored_as_utc(self, storage):
        local = datetime(2024, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
        storage.insert("offset", local)
        [entry] = storage.list_recent(1)
        assert entry.created_at == local
        assert entry.created_at.tzinfo == timezone.utc

    def test_default_timestamp_is_utc(self, storage):
        storage.insert("now")
        [entry] = storage.list_recent(1)
        assert entry.created_at.tzinfo == timezone.utc


class TestLastContent:
    def test_empty_store(self, storage):
        assert storage.last_content() is None

    def test_returns_newest(self, storage):
        storage.insert("first")
        storage.insert("second")
        assert storage.last_content() == "second"


class TestGetById:
    def test_missing(self, storage):
        assert storage.get_by_id(42) is None

    @pytest.mark.parametrize("entry_id", [0, -1, 2**63, 10**20])
    def test_out_of_range_is_missing(self, storage, entry_id):
        storage.insert("a")
        assert storage.get_by_id(entry_id) is None

    def test_found(self, storage):
        storage.insert("a")
        entry_id = storage.insert("b")
        assert storage.get_by_id(entry_id) == "b"


# endregion
# region Listing and search


class TestListRecent:
    def test_descending_and_limited(self, storage):
        for i in range(15):
            storage.insert(f"item {i}")
        entries = storage.list_recent(10)
        assert len(entries) == 10
        ids = [e.id for e in entries]
        assert ids == sorted(ids, reverse=True)
        assert entries[0].content == "item 14"

    def test_limit_larger_than_rows(self, storage):
        storage.insert("one")
        storage.insert("two")
        assert [e.content for e in storage.list_recent(10)] == ["two", "one"]

    def test_zero_limit(self, storage):
        storage.insert("one")
        assert storage.list_recent(0) == []

    def test_negative_limit(self, storage):
        with pytest.raises(ValueError):
            storage.list_recent(-1)

    def test_empty(self, storage):
        assert storage.list_recent(10) == []

    def test_entries_are_plain_read_models(self, storage):
        storage.insert("one")
        [entry] = storage.list_recent(1)
        assert isinstance(entry, HistoryEntry)
        assert "examples" not in HistoryEntry.model_json_schema()


class TestSearch:
    def test_matches_substring(self, storage):
        first = storage.insert("abcXYZ")
        storage.insert("nomatch")
        third = storage.insert("preXYZpost")
        results = storage.search("XYZ", 20)
        assert [e.id for e in results] == [third, first]

    def test_limit(self, storage):
        for i in range(5):
            storage.insert(f"match {i}")
        assert len(storage.search("match", 3)) == 3

    def test_no_results(self, storage):
        storage.insert("something")
        assert storage.search("absent", 20) == []

    def test_wildcards_are_literal(self, storage):
        storage.insert("100% sure")
        storage.insert("1000 sure")
        storage.insert("snake_case")
        storage.insert("snakeXcase")
        assert [e.content for e in storage.search("0%", 20)] == ["100% sure"]
        assert [e.content for e in storage.search("e_c", 20)] == ["snake_case"]

    def test_backslash_is_literal(self, storage):
        storage.insert(r"C:\Users\me")
        storage.insert("C:/Users/me")
        assert [e.content for e in storage.search("\\Users", 20)] == [r"C:\Users\me"]


# endregion
# region Clear


class TestClear:
    def test_clear_empty(self, storage):
        assert storage.clear() == 0
        assert storage.list_recent(10) == []
        storage.insert("still works")
        assert storage.count() == 1

    def test_clear_counts_rows(self, storage):
        for i in range(4):
            storage.insert(f"item {i}")
        assert storage.clear() == 4
        assert storage.list_recent(10) == []
        assert storage.last_content() is None

    def test_ids_not_reused_after_clear(self, storage):
        last_id = storage.insert("before")
        storage.clear()
        assert storage.insert("after") > last_id

    def test_vacuum_failure_is_not_fatal(self, storage, monkeypatch, caplog):
        def failing_vacuum(self):
            raise OperationalError("VACUUM", {}, Exception("disk I/O error"))

        monkeypatch.setattr(DatabaseSessionGenerator, "vacuum", failing_vacuum)
        storage.insert("x")
        assert storage.clear() == 1
        assert storage.count() == 0
        assert "VACUUM failed" in caplog.text


# endregion
# region Concurrency


class TestConcurrency:
    def test_busy_writer_times_out(self, db_path):
        with Storage.open(db_path, busy_timeout_ms=200) as storage:
            blocker = sqlite3.connect(db_path, isolation_level=None)
            blocker.execute("BEGIN IMMEDIATE")
            try:
                started = time.monotonic()
                with pytest.raises(StorageBusyError):
                    storage.insert("blocked")
                assert time.monotonic() - started < 5
            finally:
                blocker.execute("ROLLBACK")
                blocker.close()
            # Lock released: the same handle writes again
            entry_id = storage.insert("unblocked")
            assert storage.get_by_id(entry_id) == "unblocked"

    def test_busy_error_is_storage_error(self):
        assert issubclass(StorageBusyError, StorageError)

    def test_concurrent_writers_serialise(self, db_path):
        first = Storage.open(db_path)
        second = Storage.open(db_path)
        errors: list[Exception] = []

        def writer(store: Storage, prefix: str) -> None:
            for i in range(20):
                try:
                    store.insert(f"{prefix} {i}")
                except StorageBusyError as e:
                    errors.append(e)

        threads = [
            threading.Thread(target=writer, args=(first, "a")),
            threading.Thread(target=writer, args=(second, "b")),
        ]
        try:
            for t in threads:
                t.start()
            for t in threads:
                t.join(timeout=30)
            assert not any(t.is_alive() for t in threads)
            assert first.count() == 40 - len(errors)
            ids = [e.id for e in first.list_recent(100)]
            assert len(ids) == len(set(ids))
        finally:
            first.close()
            second.close()


# endregion
