from datetime import time
from types import SimpleNamespace

import pytest

from masjid.core.db import create_db_engine, init_db
from masjid.core.store import SqlDataStore, StoreError
from masjid.core.task_manager import TaskManager


class FlakyStore:
    """Wraps a real store; reads or writes raise StoreError while the matching flag is set."""

    def __init__(self, inner):
        self.inner = inner
        self.fail_reads = False
        self.fail_writes = False
        self.query_count = 0
        self.supports_push = getattr(inner, "supports_push", True)

    def query(self, table, filters=None, order_by=None):
        self.query_count += 1
        if self.fail_reads:
            raise StoreError("connection reset")
        return self.inner.query(table, filters, order_by)

    def get(self, table, row_id):
        if self.fail_reads:
            raise StoreError("connection reset")
        return self.inner.get(table, row_id)

    def _write(self, name, *args):
        if self.fail_writes:
            raise StoreError("permission denied for table")
        return getattr(self.inner, name)(*args)

    def insert(self, table, row):
        return self._write("insert", table, row)

    def update(self, table, row_id, patch):
        return self._write("update", table, row_id, patch)

    def delete(self, table, row_id):
        return self._write("delete", table, row_id)

    def subscribe_changes(self, table, callback, row_id=None):
        return self.inner.subscribe_changes(table, callback, row_id=row_id)

    def unsubscribe(self, channel):
        self.inner.unsubscribe(channel)

    @property
    def feed(self):
        return self.inner.feed


@pytest.fixture
def store():
    """SqlDataStore over a fresh in-memory SQLite database."""
    session_factory = init_db(create_db_engine(db_url="sqlite://"))
    return SqlDataStore(session_factory)


@pytest.fixture
def flaky_store(store):
    return FlakyStore(store)


@pytest.fixture
def fake_app(store):
    task_manager = TaskManager()
    app = SimpleNamespace(store=store, task_manager=task_manager, components=[])
    app.get_component = lambda name: next((c for c in app.components if c.name == name), None)
    yield app
    for component in app.components:
        component.destroy()
    task_manager.stop()


@pytest.fixture
def daily_slots(store):
    """Five daily prayers plus Jummah, in display order, all active."""
    rows = [
        ("Fajr", time(5, 15), time(5, 30)),
        ("Dhuhr", time(12, 45), time(13, 0)),
        ("Jummah", time(12, 45), time(13, 15)),
        ("Asr", time(16, 15), time(16, 30)),
        ("Maghrib", time(18, 55), time(19, 0)),
        ("Isha", time(20, 15), time(20, 30)),
    ]
    ids = {}
    for order, (name, adhan, iqama) in enumerate(rows, 1):
        ids[name] = store.insert("prayer_times", {
            "prayer_name": name,
            "adhan_time": adhan,
            "iqama_time": iqama,
            "is_active": True,
            "display_order": order,
        })
    return ids
