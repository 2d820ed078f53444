"""
Per-plugin API for Events. Mounted at /api/components/events/.
- /data: cached upcoming events, flat and grouped into date sections.
- /data/{id}: one event.
- /admin: upcoming events including unpublished, plus create/update/delete/publish toggle.
"""
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from masjid.api.server import ActionResult, require_component, store_call
from masjid.core.formatting import format_time_12h
from masjid.core.validation import utc_to_local

from .forms import EventForm
from .models import EventItem
from .service import create_event, delete_event, fetch_admin_events, toggle_event_published, update_event

COMPONENT_NAME = "Events"


class EventResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    local_start: datetime
    start_display: str
    capacity: Optional[int] = None
    image_url: Optional[str] = None
    is_published: bool

    @classmethod
    def from_item(cls, item: EventItem, tz_name: Optional[str] = None) -> "EventResponse":
        local_start = utc_to_local(item.start_time, tz_name)
        return cls(
            **item.model_dump(exclude={"created_at"}),
            local_start=local_start,
            start_display=format_time_12h(local_start),
        )


class EventSection(BaseModel):
    title: str
    day: date
    events: List[EventResponse]


class EventsResponse(BaseModel):
    state: str
    error: Optional[str] = None
    last_updated: Optional[datetime] = None
    events: List[EventResponse]
    sections: List[EventSection]


def get_router(masjid_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/components/events."""
    router = APIRouter(tags=["Events"])

    def _timezone() -> Optional[str]:
        component = masjid_app.get_component(COMPONENT_NAME)
        return component.timezone if component is not None else None

    def _snapshot(component) -> EventsResponse:
        tz = component.timezone
        return EventsResponse(
            **component.status(),
            events=[EventResponse.from_item(e, tz) for e in component.events],
            sections=[
                EventSection(
                    title=s["title"], day=s["day"], events=[EventResponse.from_item(e, tz) for e in s["events"]]
                )
                for s in component.sections()
            ],
        )

    @router.get("/data", response_model=EventsResponse)
    def get_data() -> EventsResponse:
        return _snapshot(require_component(masjid_app, COMPONENT_NAME))

    @router.post("/refresh", response_model=EventsResponse)
    def refresh() -> EventsResponse:
        component = require_component(masjid_app, COMPONENT_NAME)
        component.refresh()
        return _snapshot(component)

    @router.get("/data/{event_id}", response_model=EventResponse)
    def get_detail(event_id: str) -> EventResponse:
        component = require_component(masjid_app, COMPONENT_NAME)
        record = component.open_detail(event_id)
        try:
            if record.item is None:
                raise HTTPException(status_code=404 if record.not_found else 502, detail=record.error)
            return EventResponse.from_item(record.item, component.timezone)
        finally:
            record.close()

    @router.get("/admin", response_model=List[EventResponse])
    def admin_list() -> List[EventResponse]:
        items = store_call(lambda: fetch_admin_events(masjid_app.store), "Failed to load events")
        tz = _timezone()
        return [EventResponse.from_item(e, tz) for e in items]

    @router.post("/admin", response_model=ActionResult, status_code=201)
    def admin_create(form: EventForm) -> ActionResult:
        new_id = store_call(lambda: create_event(masjid_app.store, form, _timezone()), "Failed to save event")
        return ActionResult(id=new_id, message="Event created successfully")

    @router.put("/admin/{event_id}", response_model=ActionResult)
    def admin_update(event_id: str, form: EventForm) -> ActionResult:
        store_call(lambda: update_event(masjid_app.store, event_id, form, _timezone()), "Failed to save event")
        return ActionResult(id=event_id, message="Event updated successfully")

    @router.post("/admin/{event_id}/toggle-publish", response_model=ActionResult)
    def admin_toggle_publish(event_id: str) -> ActionResult:
        published = store_call(lambda: toggle_event_published(masjid_app.store, event_id), "Failed to update event")
        return ActionResult(
            id=event_id, message="Event published" if published else "Event unpublished", is_published=published
        )

    @router.delete("/admin/{event_id}", response_model=ActionResult)
    def admin_delete(event_id: str) -> ActionResult:
        store_call(lambda: delete_event(masjid_app.store, event_id), "Failed to delete event")
        return ActionResult(id=event_id, message="Event deleted")

    return router
