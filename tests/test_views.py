"""Unit tests for the in-memory transcript view store.

WHY: The view store holds live layout state for the HTTP API. Lost
views, views that never expire, or a corrupted ID table under concurrent
requests would all surface as confusing 404s or memory growth.

HOW: Tests are organized by class, one per concern:
  - TestViewCreation: create_view basics and the max_views limit
  - TestViewRetrieval: get_view touch semantics, peek and list_views
  - TestViewDeletion: delete_view and clear
  - TestTTLCleanup: idle expiry and boundary conditions
  - TestThreadSafety: concurrent creation doesn't corrupt state

RULES:
- Each test creates its own ViewStore instance (no shared mutable state)
- Time-dependent tests use monkeypatch to control time.time()
"""

from __future__ import annotations

import threading
import time

import pytest

from chatwrap.config import LayoutConfig
from chatwrap.server.views import DEFAULT_TTL_SECONDS, ViewStore


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_store(**kwargs) -> ViewStore:
    """Create a ViewStore with optional overrides."""
    return ViewStore(**kwargs)


def _config(**overrides) -> LayoutConfig:
    values = dict(indent_column=27, merge_indicator="none", unit="column")
    values.update(overrides)
    return LayoutConfig(**values)


# ---------------------------------------------------------------------------
# TestViewCreation
# ---------------------------------------------------------------------------


class TestViewCreation:
    """ViewStore.create_view() builds and stores a TranscriptView."""

    def test_assigns_unique_id(self):
        store = _make_store()
        a = store.create_view(_config())
        b = store.create_view(_config())
        assert a.id != b.id

    def test_view_uses_config(self):
        store = _make_store()
        entry = store.create_view(_config(indent_column=12))
        assert entry.view.state.indent_width == 12

    def test_timestamps_set(self):
        store = _make_store()
        entry = store.create_view(_config())
        assert entry.created_at > 0
        assert entry.updated_at == entry.created_at

    def test_max_views_enforced(self):
        store = _make_store(max_views=2)
        store.create_view(_config())
        store.create_view(_config())
        with pytest.raises(ValueError, match="Maximum number"):
            store.create_view(_config())

    def test_default_ttl(self):
        assert DEFAULT_TTL_SECONDS == 3600


# ---------------------------------------------------------------------------
# TestViewRetrieval
# ---------------------------------------------------------------------------


class TestViewRetrieval:
    """get_view() touches entries, peek() does not."""

    def test_get_existing(self):
        store = _make_store()
        entry = store.create_view(_config())
        assert store.get_view(entry.id) is entry

    def test_get_missing_returns_none(self):
        assert _make_store().get_view("nonexistent") is None

    def test_get_bumps_updated_at(self, monkeypatch):
        store = _make_store()
        monkeypatch.setattr(time, "time", lambda: 100.0)
        entry = store.create_view(_config())
        monkeypatch.setattr(time, "time", lambda: 150.0)
        store.get_view(entry.id)
        assert entry.updated_at == 150.0
        assert entry.created_at == 100.0

    def test_peek_does_not_touch(self, monkeypatch):
        store = _make_store()
        monkeypatch.setattr(time, "time", lambda: 100.0)
        entry = store.create_view(_config())
        monkeypatch.setattr(time, "time", lambda: 150.0)
        assert store.peek(entry.id) is entry
        assert entry.updated_at == 100.0

    def test_list_ordered_by_creation(self, monkeypatch):
        store = _make_store()
        monkeypatch.setattr(time, "time", lambda: 100.0)
        first = store.create_view(_config())
        monkeypatch.setattr(time, "time", lambda: 200.0)
        second = store.create_view(_config())
        assert [e.id for e in store.list_views()] == [first.id, second.id]


# ---------------------------------------------------------------------------
# TestViewDeletion
# ---------------------------------------------------------------------------


class TestViewDeletion:
    def test_delete_existing(self):
        store = _make_store()
        entry = store.create_view(_config())
        assert store.delete_view(entry.id) is True
        assert store.get_view(entry.id) is None

    def test_delete_missing(self):
        assert _make_store().delete_view("nonexistent") is False

    def test_clear(self):
        store = _make_store()
        store.create_view(_config())
        store.create_view(_config())
        store.clear()
        assert store.list_views() == []


# ---------------------------------------------------------------------------
# TestTTLCleanup
# ---------------------------------------------------------------------------


class TestTTLCleanup:
    """cleanup_expired() removes views idle longer than the TTL."""

    def test_removes_idle_view(self, monkeypatch):
        store = _make_store(ttl_seconds=60)
        monkeypatch.setattr(time, "time", lambda: 100.0)
        entry = store.create_view(_config())

        monkeypatch.setattr(time, "time", lambda: 161.0)
        assert store.cleanup_expired() == 1
        assert store.peek(entry.id) is None

    def test_keeps_recent_view(self, monkeypatch):
        store = _make_store(ttl_seconds=60)
        monkeypatch.setattr(time, "time", lambda: 100.0)
        entry = store.create_view(_config())

        monkeypatch.setattr(time, "time", lambda: 159.0)
        assert store.cleanup_expired() == 0
        assert store.peek(entry.id) is not None

    def test_touch_extends_lifetime(self, monkeypatch):
        store = _make_store(ttl_seconds=60)
        monkeypatch.setattr(time, "time", lambda: 100.0)
        entry = store.create_view(_config())
        monkeypatch.setattr(time, "time", lambda: 150.0)
        store.get_view(entry.id)

        monkeypatch.setattr(time, "time", lambda: 200.0)
        assert store.cleanup_expired() == 0

    def test_removes_multiple(self, monkeypatch):
        store = _make_store(ttl_seconds=60)
        monkeypatch.setattr(time, "time", lambda: 100.0)
        store.create_view(_config())
        store.create_view(_config())
        monkeypatch.setattr(time, "time", lambda: 130.0)
        fresh = store.create_view(_config())

        monkeypatch.setattr(time, "time", lambda: 175.0)
        assert store.cleanup_expired() == 2
        assert [e.id for e in store.list_views()] == [fresh.id]


# ---------------------------------------------------------------------------
# TestThreadSafety
# ---------------------------------------------------------------------------


class TestThreadSafety:
    def test_concurrent_creation(self):
        store = _make_store(max_views=500)
        errors = []

        def worker():
            try:
                for _ in range(20):
                    store.create_view(_config())
            except Exception as exc:  # pragma: no cover - surfaced below
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        ids = [e.id for e in store.list_views()]
        assert len(ids) == 200
        assert len(set(ids)) == 200
