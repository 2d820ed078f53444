from typing import List
from urllib.parse import quote

from masjid.core.store import DataStore, OrderBy, eq

from .models import TABLE, ContactChannel

LOAD_ERROR = "Unable to load contact information. Please try again."


def fetch_contact_channels(store: DataStore) -> List[ContactChannel]:
    rows = store.query(TABLE, [eq("is_active", True)], [OrderBy("display_order")])
    return [ContactChannel.model_validate(r) for r in rows]


def mailto_link(channel: ContactChannel) -> str:
    """mailto: URL with the subject "<name> Inquiry"."""
    subject = quote(f"{channel.name} Inquiry", safe="")
    return f"mailto:{channel.contact_email}?subject={subject}"
