"""
Per-plugin API for Announcements. Mounted at /api/components/announcements/.
- /data: cached published announcements, newest first.
- /data/{id}: one published announcement.
- /admin: all announcements plus create/update/delete/publish toggle.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict

from masjid.api.server import ActionResult, require_component, store_call
from masjid.core.db import utc_now
from masjid.core.formatting import format_relative_date, truncate_text

from .forms import AnnouncementForm
from .models import NewsItem
from .service import (
    create_announcement,
    delete_announcement,
    fetch_all_announcements,
    toggle_announcement_published,
    update_announcement,
)

COMPONENT_NAME = "Announcements"
SUMMARY_LENGTH = 140


class AnnouncementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    content: str
    summary: str
    image_url: Optional[str] = None
    is_published: bool
    published_at: datetime
    published_display: str

    @classmethod
    def from_item(cls, item: NewsItem, now: datetime) -> "AnnouncementResponse":
        return cls(
            **item.model_dump(include={"id", "title", "content", "image_url", "is_published", "published_at"}),
            summary=truncate_text(item.content, SUMMARY_LENGTH),
            published_display=format_relative_date(item.published_at, now),
        )


class AnnouncementsResponse(BaseModel):
    state: str
    error: Optional[str] = None
    last_updated: Optional[datetime] = None
    announcements: List[AnnouncementResponse]


def get_router(masjid_app) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/components/announcements."""
    router = APIRouter(tags=["Announcements"])

    def _snapshot(component) -> AnnouncementsResponse:
        now = utc_now()
        return AnnouncementsResponse(
            **component.status(),
            announcements=[AnnouncementResponse.from_item(a, now) for a in component.announcements],
        )

    @router.get("/data", response_model=AnnouncementsResponse)
    def get_data() -> AnnouncementsResponse:
        return _snapshot(require_component(masjid_app, COMPONENT_NAME))

    @router.post("/refresh", response_model=AnnouncementsResponse)
    def refresh() -> AnnouncementsResponse:
        component = require_component(masjid_app, COMPONENT_NAME)
        component.refresh()
        return _snapshot(component)

    @router.get("/data/{announcement_id}", response_model=AnnouncementResponse)
    def get_detail(announcement_id: str) -> AnnouncementResponse:
        component = require_component(masjid_app, COMPONENT_NAME)
        record = component.open_detail(announcement_id)
        try:
            if record.item is None:
                status = 404 if record.not_found else 502
                raise HTTPException(status_code=status, detail=record.error)
            return AnnouncementResponse.from_item(record.item, utc_now())
        finally:
            record.close()

    @router.get("/admin", response_model=List[AnnouncementResponse])
    def admin_list() -> List[AnnouncementResponse]:
        """All announcements, published or not."""
        items = store_call(lambda: fetch_all_announcements(masjid_app.store), "Failed to load announcements")
        now = utc_now()
        return [AnnouncementResponse.from_item(a, now) for a in items]

    @router.post("/admin", response_model=ActionResult, status_code=201)
    def admin_create(form: AnnouncementForm) -> ActionResult:
        new_id = store_call(lambda: create_announcement(masjid_app.store, form), "Failed to save announcement")
        return ActionResult(id=new_id, message="Announcement created successfully")

    @router.put("/admin/{announcement_id}", response_model=ActionResult)
    def admin_update(announcement_id: str, form: AnnouncementForm) -> ActionResult:
        store_call(
            lambda: update_announcement(masjid_app.store, announcement_id, form), "Failed to save announcement"
        )
        return ActionResult(id=announcement_id, message="Announcement updated successfully")

    @router.post("/admin/{announcement_id}/toggle-publish", response_model=ActionResult)
    def admin_toggle_publish(announcement_id: str) -> ActionResult:
        published = store_call(
            lambda: toggle_announcement_published(masjid_app.store, announcement_id),
            "Failed to update announcement",
        )
        return ActionResult(
            id=announcement_id,
            message="Announcement published" if published else "Announcement unpublished",
            is_published=published,
        )

    @router.delete("/admin/{announcement_id}", response_model=ActionResult)
    def admin_delete(announcement_id: str) -> ActionResult:
        store_call(lambda: delete_announcement(masjid_app.store, announcement_id), "Failed to delete announcement")
        return ActionResult(id=announcement_id, message="Announcement deleted")

    return router
