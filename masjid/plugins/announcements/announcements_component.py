from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from masjid.core.changes import visible_row_changed
from masjid.core.component_base import LiveComponent
from masjid.core.live_cache import LiveCollection, LiveRecord

from .models import TABLE, NewsItem
from .service import (
    DETAIL_ERROR,
    LOAD_ERROR,
    NOT_AVAILABLE,
    fetch_published_announcements,
    get_published_announcement,
)


class AnnouncementsComponent(LiveComponent):
    name = "Announcements"

    def __init__(self, app, config: Dict[str, Any], clock: Optional[Callable[[], datetime]] = None):
        super().__init__(app, config)
        self.clock = clock or datetime.now

    @property
    def announcements(self) -> List[NewsItem]:
        return self.live.items if self.live is not None else []

    def create_live(self) -> LiveCollection:
        return LiveCollection(
            self.store,
            TABLE,
            fetch_published_announcements,
            relevant=visible_row_changed("is_published"),
            error_message=LOAD_ERROR,
            clock=self.clock,
            name="announcements",
        )

    def open_detail(self, announcement_id: str) -> LiveRecord:
        """Single-announcement view: subscribed to that row only. Caller must close() it."""
        record = LiveRecord(
            self.store,
            TABLE,
            lambda store: get_published_announcement(store, announcement_id),
            row_id=announcement_id,
            error_message=DETAIL_ERROR,
            not_found_message=NOT_AVAILABLE,
            clock=self.clock,
            name=f"announcement_{announcement_id}",
        )
        record.subscribe()
        record.load()
        return record
