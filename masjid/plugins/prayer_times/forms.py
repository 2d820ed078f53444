"""
Admin edit form for one prayer slot. Only the fields that were sent are patched.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, model_validator

from masjid.core.formatting import parse_hhmm
from masjid.core.validation import blank_to_none, is_valid_time


class PrayerSlotUpdateForm(BaseModel):
    adhan_time: Optional[str] = None
    iqama_time: Optional[str] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_fields(self) -> "PrayerSlotUpdateForm":
        if "iqama_time" in self.model_fields_set and not (self.iqama_time or "").strip():
            raise ValueError("Iqama time is required")
        if self.iqama_time is not None and not is_valid_time(self.iqama_time.strip()):
            raise ValueError("Iqama time must be in HH:MM format")
        adhan = blank_to_none(self.adhan_time)
        if adhan is not None and not is_valid_time(adhan):
            raise ValueError("Adhan time must be in HH:MM format")
        return self

    def to_patch(self) -> Dict[str, Any]:
        patch: Dict[str, Any] = {}
        fields = self.model_fields_set
        if "adhan_time" in fields:
            adhan = blank_to_none(self.adhan_time)
            patch["adhan_time"] = parse_hhmm(adhan) if adhan else None
        if "iqama_time" in fields:
            patch["iqama_time"] = parse_hhmm(self.iqama_time)
        if "is_active" in fields and self.is_active is not None:
            patch["is_active"] = self.is_active
        if "notes" in fields:
            patch["notes"] = blank_to_none(self.notes)
        return patch
