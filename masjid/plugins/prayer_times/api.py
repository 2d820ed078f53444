"""
Per-plugin API for Prayer Times. Mounted at /api/components/prayer_times/.
- /data: cached active slots plus the next prayer.
- /refresh: manual refresh.
- /admin: all slots; PATCH /admin/{slot_id} edits one slot.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from masjid.api.server import require_component, store_call
from masjid.core.formatting import format_hhmm, format_time_12h

from .forms import PrayerSlotUpdateForm
from .models import PrayerSlot
from .service import fetch_all_prayer_slots, update_prayer_slot

COMPONENT_NAME = "Prayer Times"


class PrayerSlotResponse(BaseModel):
    id: str
    prayer_name: str
    adhan_time: Optional[str] = None
    iqama_time: str
    adhan_display: Optional[str] = None
    iqama_display: str
    is_active: bool
    display_order: int
    notes: Optional[str] = None
    is_next: bool = False

    @classmethod
    def from_slot(cls, slot: PrayerSlot, next_id: Optional[str] = None) -> "PrayerSlotResponse":
        return cls(
            id=slot.id,
            prayer_name=slot.prayer_name,
            adhan_time=format_hhmm(slot.adhan_time) if slot.adhan_time else None,
            iqama_time=format_hhmm(slot.iqama_time),
            adhan_display=format_time_12h(slot.adhan_time) if slot.adhan_time else None,
            iqama_display=format_time_12h(slot.iqama_time),
            is_active=slot.is_active,
            display_order=slot.display_order,
            notes=slot.notes,
            is_next=slot.id == next_id,
        )


class PrayerTimesResponse(BaseModel):
    state: str
    error: Optional[str] = None
    last_updated: Optional[datetime] = None
    next_prayer: Optional[PrayerSlotResponse] = None
    prayers: List[PrayerSlotResponse]


class UpdateResult(BaseModel):
    updated: bool
    message: str


def _snapshot(component) -> PrayerTimesResponse:
    next_prayer = component.next_prayer
    next_id = next_prayer.id if next_prayer else None
    return PrayerTimesResponse(
        **component.status(),
        next_prayer=PrayerSlotResponse.from_slot(next_prayer, next_id) if next_prayer else None,
        prayers=[PrayerSlotResponse.from_slot(s, next_id) for s in component.slots],
    )


def get_router(masjid_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/components/prayer_times."""
    router = APIRouter(tags=["Prayer Times"])

    @router.get("/data", response_model=PrayerTimesResponse)
    def get_data() -> PrayerTimesResponse:
        """Return cached prayer slots and the next prayer."""
        component = require_component(masjid_app, COMPONENT_NAME)
        component.recompute_next_prayer()
        return _snapshot(component)

    @router.post("/refresh", response_model=PrayerTimesResponse)
    def refresh() -> PrayerTimesResponse:
        component = require_component(masjid_app, COMPONENT_NAME)
        component.refresh()
        return _snapshot(component)

    @router.get("/admin", response_model=List[PrayerSlotResponse])
    def admin_list() -> List[PrayerSlotResponse]:
        """All slots including inactive ones."""
        slots = store_call(lambda: fetch_all_prayer_slots(masjid_app.store), "Failed to load prayer times")
        return [PrayerSlotResponse.from_slot(s) for s in slots]

    @router.patch("/admin/{slot_id}", response_model=UpdateResult)
    def admin_update(slot_id: str, form: PrayerSlotUpdateForm) -> UpdateResult:
        updated = store_call(
            lambda: update_prayer_slot(masjid_app.store, slot_id, form), "Failed to update prayer time"
        )
        if not updated:
            return UpdateResult(updated=False, message="No changes to save")
        return UpdateResult(updated=True, message="Prayer time updated successfully")

    return router
