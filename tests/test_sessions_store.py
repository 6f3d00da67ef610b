"""Unit tests for the in-memory editing session store.

WHY: The store is the HTTP API's only state. A missed expiry leaks sessions;
a broken capacity check lets one client exhaust memory.

HOW: Tests are organized by concern:
  - TestAdd: ids, capacity
  - TestLookup: get, list, delete
  - TestTTLCleanup: expiry measured from last access

RULES:
- Each test creates its own SessionStore
- Time-dependent tests use monkeypatch to control time.time()
"""

from __future__ import annotations

import threading
import time

import pytest

from subtitle_editor.core.session import EditingSession
from subtitle_editor.server.sessions import SessionStore


@pytest.fixture
def editing_session(video_reference) -> EditingSession:
    return EditingSession(video_reference)


class TestAdd:

    def test_assigns_unique_ids(self, editing_session):
        store = SessionStore()
        first = store.add(editing_session)
        second = store.add(editing_session)
        assert first.id != second.id
        assert len(first.id) == 32

    def test_timestamps(self, editing_session):
        record = SessionStore().add(editing_session)
        assert record.created_at == record.last_accessed_at

    def test_each_record_has_its_own_lock(self, editing_session):
        store = SessionStore()
        first = store.add(editing_session)
        second = store.add(editing_session)
        assert first.lock is not second.lock
        with first.lock:
            assert second.lock.acquire(blocking=False)
            second.lock.release()
            assert store.get(first.id) is first

    def test_capacity(self, editing_session):
        store = SessionStore(max_sessions=2)
        store.add(editing_session)
        store.add(editing_session)
        with pytest.raises(ValueError, match="Maximum number"):
            store.add(editing_session)

    def test_concurrent_adds_respect_capacity(self, editing_session):
        store = SessionStore(max_sessions=10)
        errors = []

        def worker():
            try:
                store.add(editing_session)
            except ValueError as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store.list_sessions()) == 10
        assert len(errors) == 10


class TestLookup:

    def test_get(self, editing_session):
        store = SessionStore()
        record = store.add(editing_session)
        assert store.get(record.id).session is editing_session

    def test_get_unknown(self):
        assert SessionStore().get("missing") is None

    def test_get_bumps_last_access(self, editing_session, monkeypatch):
        store = SessionStore()
        record = store.add(editing_session)
        monkeypatch.setattr(time, "time", lambda: record.created_at + 100)
        store.get(record.id)
        assert record.last_accessed_at == record.created_at + 100

    def test_list_oldest_first(self, editing_session, monkeypatch):
        store = SessionStore()
        monkeypatch.setattr(time, "time", lambda: 2000.0)
        newer = store.add(editing_session)
        monkeypatch.setattr(time, "time", lambda: 1000.0)
        older = store.add(editing_session)
        assert [r.id for r in store.list_sessions()] == [older.id, newer.id]

    def test_delete(self, editing_session):
        store = SessionStore()
        record = store.add(editing_session)
        assert store.delete(record.id) is True
        assert store.get(record.id) is None
        assert store.delete(record.id) is False


class TestTTLCleanup:

    def test_expires_idle_sessions(self, editing_session, monkeypatch):
        store = SessionStore(ttl_seconds=60)
        record = store.add(editing_session)
        monkeypatch.setattr(time, "time", lambda: record.last_accessed_at + 61)
        assert store.cleanup_expired() == 1
        assert store.get(record.id) is None

    def test_keeps_recent_sessions(self, editing_session, monkeypatch):
        store = SessionStore(ttl_seconds=60)
        record = store.add(editing_session)
        monkeypatch.setattr(time, "time", lambda: record.last_accessed_at + 60)
        assert store.cleanup_expired() == 0

    def test_access_extends_lifetime(self, editing_session, monkeypatch):
        store = SessionStore(ttl_seconds=60)
        record = store.add(editing_session)
        start = record.created_at
        monkeypatch.setattr(time, "time", lambda: start + 50)
        store.get(record.id)
        monkeypatch.setattr(time, "time", lambda: start + 100)
        assert store.cleanup_expired() == 0
        monkeypatch.setattr(time, "time", lambda: start + 111)
        assert store.cleanup_expired() == 1
