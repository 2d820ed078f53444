from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from masjid.core.changes import visible_row_changed
from masjid.core.component_base import LiveComponent
from masjid.core.live_cache import LiveCollection, LiveRecord

from .models import TABLE, EventItem
from .service import (
    DETAIL_ERROR,
    LOAD_ERROR,
    NOT_FOUND,
    date_sections,
    fetch_upcoming_events,
    get_published_event,
)


class EventsComponent(LiveComponent):
    name = "Events"

    def __init__(self, app, config: Dict[str, Any], clock: Optional[Callable[[], datetime]] = None):
        super().__init__(app, config)
        self.clock = clock or datetime.now

    @property
    def timezone(self) -> Optional[str]:
        return self.config.get("timezone") or None

    @property
    def events(self) -> List[EventItem]:
        return self.live.items if self.live is not None else []

    def sections(self) -> List[dict]:
        """Cached events grouped under Today / Tomorrow / weekday headers."""
        return date_sections(self.events, self.clock().date(), self.timezone)

    def create_live(self) -> LiveCollection:
        return LiveCollection(
            self.store,
            TABLE,
            fetch_upcoming_events,
            relevant=visible_row_changed("is_published"),
            error_message=LOAD_ERROR,
            clock=self.clock,
            name="events",
        )

    def open_detail(self, event_id: str) -> LiveRecord:
        record = LiveRecord(
            self.store,
            TABLE,
            lambda store: get_published_event(store, event_id),
            row_id=event_id,
            error_message=DETAIL_ERROR,
            not_found_message=NOT_FOUND,
            clock=self.clock,
            name=f"event_{event_id}",
        )
        record.subscribe()
        record.load()
        return record
