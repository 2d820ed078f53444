"""
Event create/edit form. Dates and times are entered as local wall time and stored as UTC.
"""
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, model_validator

from masjid.core.validation import blank_to_none, is_valid_date, is_valid_time, local_to_utc

_CAPACITY_RE = re.compile(r"^\d+$")


class EventForm(BaseModel):
    title: str = ""
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: str = ""
    start_time: str = ""
    end_date: Optional[str] = None
    end_time: Optional[str] = None
    capacity: Optional[str] = None
    image_url: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def capacity_as_text(cls, data: Any) -> Any:
        # accept a JSON number for capacity as well as text
        if isinstance(data, dict) and isinstance(data.get("capacity"), int):
            data = {**data, "capacity": str(data["capacity"])}
        return data

    @model_validator(mode="after")
    def check_fields(self) -> "EventForm":
        """Checks run in display order and stop at the first failure."""
        if not self.title.strip():
            raise ValueError("Title is required")
        start_date, start_time = self.start_date.strip(), self.start_time.strip()
        if not start_date or not start_time:
            raise ValueError("Start date and time are required")
        if not is_valid_date(start_date):
            raise ValueError("Start date must be in YYYY-MM-DD format")
        if not is_valid_time(start_time):
            raise ValueError("Start time must be in HH:MM format")
        end_date, end_time = blank_to_none(self.end_date), blank_to_none(self.end_time)
        if bool(end_date) != bool(end_time):
            raise ValueError("Provide both end date and end time, or leave both empty")
        if end_date and not is_valid_date(end_date):
            raise ValueError("End date must be in YYYY-MM-DD format")
        if end_time and not is_valid_time(end_time):
            raise ValueError("End time must be in HH:MM format")
        capacity = blank_to_none(self.capacity)
        if capacity is not None and (not _CAPACITY_RE.match(capacity) or int(capacity) <= 0):
            raise ValueError("Capacity must be a positive number")
        return self

    def to_row(self, tz_name: Optional[str] = None) -> Dict[str, Any]:
        end_date, end_time = blank_to_none(self.end_date), blank_to_none(self.end_time)
        capacity = blank_to_none(self.capacity)
        return {
            "title": self.title.strip(),
            "description": blank_to_none(self.description),
            "location": blank_to_none(self.location),
            "start_time": local_to_utc(self.start_date.strip(), self.start_time.strip(), tz_name),
            "end_time": local_to_utc(end_date, end_time, tz_name) if end_date and end_time else None,
            "capacity": int(capacity) if capacity else None,
            "image_url": blank_to_none(self.image_url),
        }
