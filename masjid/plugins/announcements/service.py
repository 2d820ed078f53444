"""
Service layer: announcements through the data store.
Public reads see published rows only; admin reads see everything.
"""
from datetime import datetime
from typing import List, Optional

from masjid.core.db import utc_now
from masjid.core.store import DataStore, NotFoundError, OrderBy, eq
from masjid.core.validation import perform_write

from .forms import AnnouncementForm
from .models import TABLE, NewsItem

LOAD_ERROR = "Unable to load announcements. Please try again."
DETAIL_ERROR = "Unable to load announcement. Please try again."
NOT_AVAILABLE = "This announcement is no longer available."

_NEWEST_FIRST = [OrderBy("published_at", descending=True)]


def fetch_published_announcements(store: DataStore) -> List[NewsItem]:
    rows = store.query(TABLE, [eq("is_published", True)], _NEWEST_FIRST)
    return [NewsItem.model_validate(r) for r in rows]


def fetch_all_announcements(store: DataStore) -> List[NewsItem]:
    rows = store.query(TABLE, order_by=_NEWEST_FIRST)
    return [NewsItem.model_validate(r) for r in rows]


def get_published_announcement(store: DataStore, announcement_id: str) -> NewsItem:
    """NotFoundError when the id does not exist or is not published."""
    rows = store.query(TABLE, [eq("id", announcement_id), eq("is_published", True)])
    if not rows:
        raise NotFoundError(f"Announcement {announcement_id} not available")
    return NewsItem.model_validate(rows[0])


def get_announcement(store: DataStore, announcement_id: str) -> NewsItem:
    return NewsItem.model_validate(store.get(TABLE, announcement_id))


def create_announcement(store: DataStore, form: AnnouncementForm, created_by: Optional[str] = None) -> str:
    """New announcements start unpublished."""
    row = form.to_row()
    row.update(is_published=False, published_at=utc_now(), created_by=created_by)
    return perform_write(lambda: store.insert(TABLE, row), "Failed to save announcement")


def update_announcement(store: DataStore, announcement_id: str, form: AnnouncementForm) -> None:
    perform_write(lambda: store.update(TABLE, announcement_id, form.to_row()), "Failed to save announcement")


def toggle_announcement_published(store: DataStore, announcement_id: str, now: Optional[datetime] = None) -> bool:
    """Flip is_published; publishing stamps published_at. Returns the new published state."""
    current = get_announcement(store, announcement_id)
    publish = not current.is_published
    patch = {"is_published": publish}
    if publish:
        patch["published_at"] = now or utc_now()
    perform_write(lambda: store.update(TABLE, announcement_id, patch), "Failed to update announcement")
    return publish


def delete_announcement(store: DataStore, announcement_id: str) -> None:
    perform_write(lambda: store.delete(TABLE, announcement_id), "Failed to delete announcement")
