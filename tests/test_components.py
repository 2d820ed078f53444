"""
Live components mounted against an in-memory store.
"""
from datetime import date, datetime, time, timedelta
from time import monotonic, sleep
from types import SimpleNamespace

from masjid.core.db import session_scope, utc_now
from masjid.core.task_manager import TaskManager
from masjid.plugins.announcements.announcements_component import AnnouncementsComponent
from masjid.plugins.contact.contact_component import ContactComponent
from masjid.plugins.contact.models import ContactCategoryRow
from masjid.plugins.contact.service import mailto_link
from masjid.plugins.events.events_component import EventsComponent
from masjid.plugins.prayer_times.prayer_times_component import PrayerTimesComponent


def _mount(fake_app, component):
    component.mount()
    fake_app.components.append(component)
    return component


class TestPrayerTimesComponent:
    def test_next_prayer_follows_data_changes(self, fake_app, daily_slots):
        now = datetime(2024, 3, 13, 14, 0)  # Wednesday
        component = _mount(fake_app, PrayerTimesComponent(fake_app, {"enable": True}, clock=lambda: now))
        assert component.next_prayer.prayer_name == "Asr"
        assert "Jummah" in [s.prayer_name for s in component.slots]

        fake_app.store.update("prayer_times", daily_slots["Asr"], {"is_active": False})
        assert component.next_prayer.prayer_name == "Maghrib"

        fake_app.store.update("prayer_times", daily_slots["Asr"], {"iqama_time": time(16, 45)})
        # Asr is still inactive, the edit does not touch the visible set
        assert component.next_prayer.prayer_name == "Maghrib"

    def test_tick_is_scheduled_and_cancelled(self, fake_app, daily_slots):
        component = _mount(fake_app, PrayerTimesComponent(fake_app, {"enable": True, "tick_seconds": 30}))
        names = [t["name"] for t in fake_app.task_manager.get_active_timers()]
        assert component.tick_task_name in names

        component.destroy()
        fake_app.components.remove(component)
        assert fake_app.task_manager.get_active_timers() == []
        assert fake_app.store.feed.channel_count == 0

    def test_recompute_uses_current_clock(self, fake_app, daily_slots):
        clock = {"now": datetime(2024, 3, 13, 14, 0)}
        component = _mount(fake_app, PrayerTimesComponent(fake_app, {"enable": True}, clock=lambda: clock["now"]))
        clock["now"] = datetime(2024, 3, 13, 23, 0)
        assert component.recompute_next_prayer().prayer_name == "Fajr"
        assert component.computed_at == clock["now"]

    def test_weekly_weekday_from_config(self, fake_app, daily_slots):
        now = datetime(2024, 3, 13, 13, 5)  # Wednesday, after Dhuhr
        config = {"enable": True, "weekly_weekday": 2}
        component = _mount(fake_app, PrayerTimesComponent(fake_app, config, clock=lambda: now))
        assert component.next_prayer.prayer_name == "Jummah"


class TestAnnouncementsComponent:
    def test_open_detail_tracks_row(self, fake_app):
        store = fake_app.store
        item_id = store.insert("announcements", {
            "title": "Fundraiser", "content": "Details", "is_published": True, "published_at": utc_now(),
        })
        component = _mount(fake_app, AnnouncementsComponent(fake_app, {"enable": True}))
        assert [a.id for a in component.announcements] == [item_id]

        record = component.open_detail(item_id)
        assert record.item.title == "Fundraiser"
        store.update("announcements", item_id, {"title": "Fundraiser dinner"})
        assert record.item.title == "Fundraiser dinner"
        assert component.announcements[0].title == "Fundraiser dinner"

        record.close()
        assert store.feed.channel_count == 1

    def test_newest_first(self, fake_app):
        store = fake_app.store
        for title, day in (("Older", 1), ("Newer", 5)):
            store.insert("announcements", {
                "title": title, "content": "x", "is_published": True, "published_at": datetime(2024, 3, day),
            })
        component = _mount(fake_app, AnnouncementsComponent(fake_app, {"enable": True}))
        assert [a.title for a in component.announcements] == ["Newer", "Older"]


class TestEventsComponent:
    def _event(self, store, title, start, published=True):
        return store.insert("events", {"title": title, "start_time": start, "is_published": published})

    def test_only_published_upcoming_events(self, fake_app):
        store = fake_app.store
        now = utc_now()
        self._event(store, "Past", now - timedelta(days=1))
        self._event(store, "Draft", now + timedelta(days=1), published=False)
        later = self._event(store, "Later", now + timedelta(days=3))
        sooner = self._event(store, "Sooner", now + timedelta(days=2))

        component = _mount(fake_app, EventsComponent(fake_app, {"enable": True, "timezone": "UTC"}))
        assert [e.id for e in component.events] == [sooner, later]

    def test_sections_grouped_by_local_day(self, fake_app):
        store = fake_app.store
        today = datetime(2030, 1, 7, 9, 0)
        self._event(store, "Halaqa", datetime(2030, 1, 7, 18, 0))
        self._event(store, "Youth night", datetime(2030, 1, 8, 18, 0))
        self._event(store, "Sisters circle", datetime(2030, 1, 8, 20, 0))
        self._event(store, "Open house", datetime(2030, 1, 12, 15, 0))

        component = _mount(fake_app, EventsComponent(fake_app, {"enable": True, "timezone": "UTC"}, clock=lambda: today))
        sections = component.sections()
        assert [s["title"] for s in sections] == ["Today", "Tomorrow", "Saturday, January 12"]
        assert [e.title for e in sections[1]["events"]] == ["Youth night", "Sisters circle"]
        assert sections[2]["day"] == date(2030, 1, 12)

    def test_detail_not_found(self, fake_app):
        component = _mount(fake_app, EventsComponent(fake_app, {"enable": True}))
        record = component.open_detail("does-not-exist")
        assert record.not_found
        assert record.error == "Event not found"
        record.close()


class TestContactComponent:
    def test_active_channels_in_order(self, fake_app):
        store = fake_app.store
        store.insert("contact_categories", {"name": "Imam", "contact_email": "imam@example.org", "display_order": 2})
        store.insert("contact_categories", {"name": "Office", "contact_email": "office@example.org", "display_order": 1})
        store.insert("contact_categories", {
            "name": "Old", "contact_email": "old@example.org", "display_order": 0, "is_active": False,
        })
        component = _mount(fake_app, ContactComponent(fake_app, {"enable": True}))
        assert [c.name for c in component.channels] == ["Office", "Imam"]

    def test_mailto_link(self, fake_app):
        store = fake_app.store
        store.insert("contact_categories", {"name": "Youth Programs", "contact_email": "youth@example.org"})
        component = _mount(fake_app, ContactComponent(fake_app, {"enable": True}))
        assert mailto_link(component.channels[0]) == "mailto:youth@example.org?subject=Youth%20Programs%20Inquiry"


class TestPolling:
    def _app(self, backing):
        app = SimpleNamespace(store=backing, task_manager=TaskManager(), components=[])
        app.get_component = lambda name: next((c for c in app.components if c.name == name), None)
        return app

    def test_store_without_push_is_polled(self, store, flaky_store):
        flaky_store.supports_push = False
        app = self._app(flaky_store)
        component = ContactComponent(app, {"enable": True, "poll_seconds": 0.05})
        component.mount()
        try:
            assert component.channels == []
            assert component.poll_task_name in [t["name"] for t in app.task_manager.get_active_timers()]

            # another client's write: lands in the database without going through the change feed
            with session_scope(store.session_factory) as session:
                session.add(ContactCategoryRow(id="c1", name="Imam", contact_email="imam@example.org"))

            deadline = monotonic() + 2
            while not component.channels and monotonic() < deadline:
                sleep(0.02)
            assert [c.id for c in component.channels] == ["c1"]
        finally:
            component.destroy()
        assert component.poll_task_name not in [t["name"] for t in app.task_manager.get_active_timers()]
        app.task_manager.stop()

    def test_push_store_is_not_polled(self, store):
        app = self._app(store)
        component = ContactComponent(app, {"enable": True, "poll_seconds": 0.05})
        component.mount()
        try:
            assert app.task_manager.get_active_timers() == []
        finally:
            component.destroy()
            app.task_manager.stop()
