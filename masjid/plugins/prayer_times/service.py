"""
Service layer: read and write prayer slots through the data store.
"""
import logging
from datetime import time
from typing import List

from masjid.core.store import DataStore, OrderBy, eq
from masjid.core.validation import perform_write

from .forms import PrayerSlotUpdateForm
from .models import TABLE, PrayerSlot

logger = logging.getLogger(__name__)

LOAD_ERROR = "Unable to load prayer times. Please try again."

DEFAULT_SLOTS = (
    ("Fajr", time(5, 15), time(5, 30)),
    ("Dhuhr", time(12, 45), time(13, 0)),
    ("Asr", time(16, 15), time(16, 30)),
    ("Maghrib", time(18, 55), time(19, 0)),
    ("Isha", time(20, 15), time(20, 30)),
    ("Jummah", time(12, 45), time(13, 15)),
)


def fetch_prayer_slots(store: DataStore) -> List[PrayerSlot]:
    """Active slots in display order."""
    rows = store.query(TABLE, [eq("is_active", True)], [OrderBy("display_order")])
    return [PrayerSlot.model_validate(r) for r in rows]


def fetch_all_prayer_slots(store: DataStore) -> List[PrayerSlot]:
    """All slots, including inactive, for the admin screen."""
    rows = store.query(TABLE, order_by=[OrderBy("display_order")])
    return [PrayerSlot.model_validate(r) for r in rows]


def update_prayer_slot(store: DataStore, slot_id: str, form: PrayerSlotUpdateForm) -> bool:
    """Apply the form's changes. Returns False when there was nothing to change."""
    patch = form.to_patch()
    if not patch:
        return False
    perform_write(lambda: store.update(TABLE, slot_id, patch), "Failed to update prayer time")
    return True


def seed_default_prayer_slots(store: DataStore) -> int:
    """Insert the default schedule when the table is empty. Returns the number of rows inserted."""
    if store.query(TABLE):
        return 0
    for order, (name, adhan, iqama) in enumerate(DEFAULT_SLOTS, 1):
        store.insert(TABLE, {
            "prayer_name": name,
            "adhan_time": adhan,
            "iqama_time": iqama,
            "is_active": True,
            "display_order": order,
        })
    logger.info(f"Seeded {len(DEFAULT_SLOTS)} prayer slots")
    return len(DEFAULT_SLOTS)
