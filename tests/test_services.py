from datetime import date, datetime, timedelta

import pytest

from masjid.core.db import utc_now
from masjid.core.store import NotFoundError
from masjid.plugins.events.service import (
    fetch_admin_events,
    fetch_upcoming_events,
    get_published_event,
    group_by_local_date,
)
from masjid.plugins.prayer_times.service import fetch_all_prayer_slots, seed_default_prayer_slots


def test_seed_only_into_empty_table(store):
    assert seed_default_prayer_slots(store) == 6
    assert seed_default_prayer_slots(store) == 0
    names = [s.prayer_name for s in fetch_all_prayer_slots(store)]
    assert names == ["Fajr", "Dhuhr", "Asr", "Maghrib", "Isha", "Jummah"]


def test_admin_events_include_unpublished(store):
    now = utc_now()
    store.insert("events", {"title": "Draft", "start_time": now + timedelta(days=1), "is_published": False})
    store.insert("events", {"title": "Live", "start_time": now + timedelta(days=2), "is_published": True})
    store.insert("events", {"title": "Done", "start_time": now - timedelta(days=2), "is_published": True})
    assert [e.title for e in fetch_admin_events(store)] == ["Draft", "Live"]
    assert [e.title for e in fetch_upcoming_events(store)] == ["Live"]


def test_grouping_uses_local_date(store):
    # 02:00 UTC on the 9th is still the evening of the 8th in Chicago
    store.insert("events", {"title": "Late halaqa", "start_time": datetime(2030, 1, 9, 2, 0), "is_published": True})
    store.insert("events", {"title": "Breakfast", "start_time": datetime(2030, 1, 9, 15, 0), "is_published": True})
    events = fetch_upcoming_events(store)

    groups = group_by_local_date(events, "America/Chicago")
    assert [(day, [e.title for e in items]) for day, items in groups] == [
        (date(2030, 1, 8), ["Late halaqa"]),
        (date(2030, 1, 9), ["Breakfast"]),
    ]
    assert len(group_by_local_date(events, "UTC")) == 1


def test_published_event_lookup_skips_drafts(store):
    start = utc_now() + timedelta(days=1)
    draft_id = store.insert("events", {"title": "Draft", "start_time": start, "is_published": False})
    live_id = store.insert("events", {"title": "Live", "start_time": start, "is_published": True})
    assert get_published_event(store, live_id).title == "Live"
    with pytest.raises(NotFoundError):
        get_published_event(store, draft_id)
