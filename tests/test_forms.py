"""
Admin form validation messages and the write-failure path.
"""
from datetime import datetime, time

import pytest
from pydantic import ValidationError

from masjid.core.validation import WriteError
from masjid.plugins.announcements.forms import AnnouncementForm
from masjid.plugins.announcements.service import (
    create_announcement,
    fetch_all_announcements,
    toggle_announcement_published,
    update_announcement,
)
from masjid.plugins.events.forms import EventForm
from masjid.plugins.prayer_times.forms import PrayerSlotUpdateForm


def _message(excinfo) -> str:
    return excinfo.value.errors()[0]["msg"]


VALID_EVENT = {
    "title": "Community Iftar",
    "start_date": "2024-03-20",
    "start_time": "19:00",
}


class TestAnnouncementForm:
    @pytest.mark.parametrize("data,message", [
        ({"title": "", "content": "x"}, "Title is required"),
        ({"title": "   ", "content": ""}, "Title is required"),
        ({"title": "Eid", "content": " "}, "Content is required"),
    ])
    def test_required_fields(self, data, message):
        with pytest.raises(ValidationError) as excinfo:
            AnnouncementForm(**data)
        assert message in _message(excinfo)

    def test_to_row_strips_and_blanks_image(self):
        form = AnnouncementForm(title=" Eid ", content=" Prayer at 8 ", image_url="  ")
        assert form.to_row() == {"title": "Eid", "content": "Prayer at 8", "image_url": None}


class TestEventForm:
    @pytest.mark.parametrize("overrides,message", [
        ({"title": " "}, "Title is required"),
        ({"start_time": ""}, "Start date and time are required"),
        ({"start_date": "03/20/2024"}, "Start date must be in YYYY-MM-DD format"),
        ({"start_date": "2024-02-30"}, "Start date must be in YYYY-MM-DD format"),
        ({"start_time": "7pm"}, "Start time must be in HH:MM format"),
        ({"end_date": "2024-03-20"}, "Provide both end date and end time, or leave both empty"),
        ({"end_time": "21:00"}, "Provide both end date and end time, or leave both empty"),
        ({"end_date": "20-03-2024", "end_time": "21:00"}, "End date must be in YYYY-MM-DD format"),
        ({"end_date": "2024-03-20", "end_time": "25:00"}, "End time must be in HH:MM format"),
        ({"capacity": "0"}, "Capacity must be a positive number"),
        ({"capacity": "lots"}, "Capacity must be a positive number"),
    ])
    def test_validation_messages(self, overrides, message):
        with pytest.raises(ValidationError) as excinfo:
            EventForm(**{**VALID_EVENT, **overrides})
        assert message in _message(excinfo)

    def test_first_failure_wins(self):
        with pytest.raises(ValidationError) as excinfo:
            EventForm(title="", start_date="bad", start_time="bad")
        assert "Title is required" in _message(excinfo)

    def test_to_row_converts_local_time_to_utc(self):
        form = EventForm(**VALID_EVENT, end_date="2024-03-20", end_time="21:30", capacity=120, location=" Hall ")
        row = form.to_row("America/Chicago")
        # CDT is UTC-5 on this date
        assert row["start_time"] == datetime(2024, 3, 21, 0, 0)
        assert row["end_time"] == datetime(2024, 3, 21, 2, 30)
        assert row["capacity"] == 120
        assert row["location"] == "Hall"
        assert row["description"] is None

    def test_optional_end_and_capacity(self):
        row = EventForm(**VALID_EVENT).to_row("UTC")
        assert row["start_time"] == datetime(2024, 3, 20, 19, 0)
        assert row["end_time"] is None
        assert row["capacity"] is None


class TestPrayerSlotUpdateForm:
    def test_empty_patch(self):
        assert PrayerSlotUpdateForm().to_patch() == {}

    def test_iqama_required_when_sent(self):
        with pytest.raises(ValidationError) as excinfo:
            PrayerSlotUpdateForm(iqama_time=" ")
        assert "Iqama time is required" in _message(excinfo)

    @pytest.mark.parametrize("field,message", [
        ("iqama_time", "Iqama time must be in HH:MM format"),
        ("adhan_time", "Adhan time must be in HH:MM format"),
    ])
    def test_time_format(self, field, message):
        with pytest.raises(ValidationError) as excinfo:
            PrayerSlotUpdateForm(**{field: "1:30pm"})
        assert message in _message(excinfo)

    def test_patch_only_contains_sent_fields(self):
        patch = PrayerSlotUpdateForm(iqama_time="13:30", adhan_time="", is_active=False).to_patch()
        assert patch == {"iqama_time": time(13, 30), "adhan_time": None, "is_active": False}


class TestWritePath:
    def test_create_starts_unpublished(self, store):
        new_id = create_announcement(store, AnnouncementForm(title="Eid", content="Prayer at 8"))
        row = store.get("announcements", new_id)
        assert row["is_published"] is False
        assert row["published_at"] is not None

    def test_write_failure_keeps_form(self, flaky_store):
        form = AnnouncementForm(title="Eid", content="Prayer at 8")
        before = form.model_dump()
        flaky_store.fail_writes = True
        with pytest.raises(WriteError) as excinfo:
            create_announcement(flaky_store, form)
        assert "permission denied" in str(excinfo.value)
        assert form.model_dump() == before

        flaky_store.fail_writes = False
        create_announcement(flaky_store, form)
        assert [a.title for a in fetch_all_announcements(flaky_store)] == ["Eid"]

    def test_toggle_publish_stamps_published_at(self, store):
        new_id = create_announcement(store, AnnouncementForm(title="Eid", content="Prayer at 8"))
        stamp = datetime(2024, 4, 10, 7, 0)
        assert toggle_announcement_published(store, new_id, now=stamp) is True
        assert store.get("announcements", new_id)["published_at"] == stamp
        assert toggle_announcement_published(store, new_id) is False
        assert store.get("announcements", new_id)["published_at"] == stamp

    def test_update_unknown_id_raises_not_found(self, store):
        from masjid.core.store import NotFoundError

        with pytest.raises(NotFoundError):
            update_announcement(store, "missing", AnnouncementForm(title="Eid", content="x"))
