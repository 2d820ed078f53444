"""
Next-prayer resolution: ordering, wraparound, weekly prayer eligibility and the empty case.
"""
from datetime import datetime, time

import pytest

from masjid.plugins.prayer_times.models import PrayerSlot
from masjid.plugins.prayer_times.resolver import eligible_slots, resolve_next_prayer

WEDNESDAY = datetime(2024, 3, 13)
FRIDAY = datetime(2024, 3, 15)


def slot(name, iqama, order, active=True):
    return PrayerSlot(id=name.lower(), prayer_name=name, iqama_time=iqama, is_active=active, display_order=order)


@pytest.fixture
def five_daily():
    return [
        slot("Fajr", time(5, 30), 1),
        slot("Dhuhr", time(13, 0), 2),
        slot("Asr", time(16, 30), 3),
        slot("Maghrib", time(19, 0), 4),
        slot("Isha", time(20, 30), 5),
    ]


@pytest.fixture
def with_jummah(five_daily):
    return five_daily[:2] + [slot("Jummah", time(13, 15), 6)] + five_daily[2:]


class TestResolveNextPrayer:
    def test_returns_first_slot_after_now(self, five_daily):
        result = resolve_next_prayer(five_daily, WEDNESDAY.replace(hour=14))
        assert result.prayer_name == "Asr"

    def test_wraps_to_first_slot_after_isha(self, five_daily):
        result = resolve_next_prayer(five_daily, WEDNESDAY.replace(hour=23))
        assert result.prayer_name == "Fajr"

    def test_weekly_prayer_excluded_on_other_days(self, with_jummah):
        for hour in (12, 13, 23):
            now = WEDNESDAY.replace(hour=hour, minute=5)
            result = resolve_next_prayer(with_jummah, now)
            assert result.prayer_name != "Jummah"
        assert resolve_next_prayer(with_jummah, WEDNESDAY.replace(hour=12)).prayer_name == "Dhuhr"

    def test_weekly_prayer_does_not_jump_ahead_on_its_day(self, with_jummah):
        """Earlier qualifying slot wins even on Friday."""
        result = resolve_next_prayer(with_jummah, FRIDAY.replace(hour=12))
        assert result.prayer_name == "Dhuhr"

    def test_weekly_prayer_is_next_once_dhuhr_passed_on_its_day(self, with_jummah):
        result = resolve_next_prayer(with_jummah, FRIDAY.replace(hour=13, minute=5))
        assert result.prayer_name == "Jummah"

    def test_no_active_slots_returns_none(self, five_daily):
        inactive = [s.model_copy(update={"is_active": False}) for s in five_daily]
        assert resolve_next_prayer(inactive, WEDNESDAY.replace(hour=9)) is None
        assert resolve_next_prayer([], WEDNESDAY.replace(hour=9)) is None

    def test_only_weekly_slot_on_other_day_returns_none(self):
        slots = [slot("Jummah", time(13, 15), 1)]
        assert resolve_next_prayer(slots, WEDNESDAY.replace(hour=9)) is None
        assert resolve_next_prayer(slots, FRIDAY.replace(hour=9)).prayer_name == "Jummah"

    def test_strictly_after_now(self, five_daily):
        result = resolve_next_prayer(five_daily, WEDNESDAY.replace(hour=13, minute=0))
        assert result.prayer_name == "Asr"

    def test_seconds_are_truncated(self, five_daily):
        # 12:59:59 is still minute 779, before Dhuhr at 780
        result = resolve_next_prayer(five_daily, WEDNESDAY.replace(hour=12, minute=59, second=59))
        assert result.prayer_name == "Dhuhr"

    def test_input_order_is_kept_not_sorted(self):
        slots = [slot("Isha", time(20, 30), 1), slot("Fajr", time(5, 30), 2)]
        # Isha comes first in display order and is still ahead at 04:00
        assert resolve_next_prayer(slots, WEDNESDAY.replace(hour=4)).prayer_name == "Isha"

    def test_configurable_weekly_prayer(self, with_jummah):
        now = WEDNESDAY.replace(hour=13, minute=5)
        result = resolve_next_prayer(with_jummah, now, weekly_weekday=WEDNESDAY.weekday())
        assert result.prayer_name == "Jummah"


def test_eligible_slots_skip_inactive(with_jummah):
    with_jummah[0] = with_jummah[0].model_copy(update={"is_active": False})
    names = [s.prayer_name for s in eligible_slots(with_jummah, WEDNESDAY)]
    assert names == ["Dhuhr", "Asr", "Maghrib", "Isha"]
