"""
Service layer: events through the data store.
Public reads see published upcoming events; admin reads see upcoming events whatever their state.
"""
from collections import OrderedDict
from datetime import date, datetime
from typing import List, Optional, Tuple

from masjid.core.db import utc_now
from masjid.core.formatting import format_date_header
from masjid.core.store import DataStore, NotFoundError, OrderBy, eq, gte
from masjid.core.validation import perform_write, utc_to_local

from .forms import EventForm
from .models import TABLE, EventItem

LOAD_ERROR = "Unable to load events. Please try again."
DETAIL_ERROR = "Unable to load event. Please try again."
NOT_FOUND = "Event not found"

_SOONEST_FIRST = [OrderBy("start_time")]


def fetch_upcoming_events(store: DataStore, now: Optional[datetime] = None) -> List[EventItem]:
    rows = store.query(TABLE, [eq("is_published", True), gte("start_time", now or utc_now())], _SOONEST_FIRST)
    return [EventItem.model_validate(r) for r in rows]


def fetch_admin_events(store: DataStore, now: Optional[datetime] = None) -> List[EventItem]:
    rows = store.query(TABLE, [gte("start_time", now or utc_now())], _SOONEST_FIRST)
    return [EventItem.model_validate(r) for r in rows]


def get_event(store: DataStore, event_id: str) -> EventItem:
    """NotFoundError when the id does not exist."""
    return EventItem.model_validate(store.get(TABLE, event_id))


def get_published_event(store: DataStore, event_id: str) -> EventItem:
    """NotFoundError when the id does not exist or is not published."""
    rows = store.query(TABLE, [eq("id", event_id), eq("is_published", True)])
    if not rows:
        raise NotFoundError(f"Event {event_id} not available")
    return EventItem.model_validate(rows[0])


def group_by_local_date(
    events: List[EventItem], tz_name: Optional[str] = None
) -> List[Tuple[date, List[EventItem]]]:
    """Group events (already sorted by start) under their local start date."""
    grouped: "OrderedDict[date, List[EventItem]]" = OrderedDict()
    for event in events:
        grouped.setdefault(utc_to_local(event.start_time, tz_name).date(), []).append(event)
    return list(grouped.items())


def date_sections(events: List[EventItem], today: date, tz_name: Optional[str] = None) -> List[dict]:
    return [
        {"title": format_date_header(day, today), "day": day, "events": items}
        for day, items in group_by_local_date(events, tz_name)
    ]


def create_event(store: DataStore, form: EventForm, tz_name: Optional[str] = None) -> str:
    row = form.to_row(tz_name)
    row["is_published"] = False
    return perform_write(lambda: store.insert(TABLE, row), "Failed to save event")


def update_event(store: DataStore, event_id: str, form: EventForm, tz_name: Optional[str] = None) -> None:
    perform_write(lambda: store.update(TABLE, event_id, form.to_row(tz_name)), "Failed to save event")


def toggle_event_published(store: DataStore, event_id: str) -> bool:
    current = get_event(store, event_id)
    publish = not current.is_published
    perform_write(lambda: store.update(TABLE, event_id, {"is_published": publish}), "Failed to update event")
    return publish


def delete_event(store: DataStore, event_id: str) -> None:
    perform_write(lambda: store.delete(TABLE, event_id), "Failed to delete event")
