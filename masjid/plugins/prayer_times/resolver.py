"""
Next-prayer resolution.

Slots arrive in configured display order (not clock order). The next prayer is the first eligible
slot, in that order, whose iqama time is strictly after now; once every eligible slot has passed,
the first eligible slot is returned as tomorrow's first prayer. The weekly prayer is eligible only on
its weekday. None means there is nothing eligible at all.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from masjid.core.formatting import minutes_since_midnight

from .models import WEEKLY_PRAYER, PrayerSlot

FRIDAY = 4  # datetime.weekday()


def is_weekly(slot: PrayerSlot, weekly_prayer: str = WEEKLY_PRAYER) -> bool:
    return slot.prayer_name.strip().casefold() == weekly_prayer.casefold()


def eligible_slots(
    slots: Sequence[PrayerSlot],
    now: datetime,
    weekly_prayer: str = WEEKLY_PRAYER,
    weekly_weekday: int = FRIDAY,
) -> list[PrayerSlot]:
    """Active slots whose recurrence matches now's weekday, input order preserved."""
    today_is_weekly = now.weekday() == weekly_weekday
    return [
        slot
        for slot in slots
        if slot.is_active and (today_is_weekly or not is_weekly(slot, weekly_prayer))
    ]


def resolve_next_prayer(
    slots: Sequence[PrayerSlot],
    now: datetime,
    weekly_prayer: str = WEEKLY_PRAYER,
    weekly_weekday: int = FRIDAY,
) -> Optional[PrayerSlot]:
    eligible = eligible_slots(slots, now, weekly_prayer, weekly_weekday)
    if not eligible:
        return None
    now_minutes = minutes_since_midnight(now)
    for slot in eligible:
        if minutes_since_midnight(slot.iqama_time) > now_minutes:
            return slot
    return eligible[0]
