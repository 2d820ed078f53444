from typing import List

from masjid.core.changes import visible_row_changed
from masjid.core.component_base import LiveComponent
from masjid.core.live_cache import LiveCollection

from .models import TABLE, ContactChannel
from .service import LOAD_ERROR, fetch_contact_channels


class ContactComponent(LiveComponent):
    name = "Contact"

    @property
    def channels(self) -> List[ContactChannel]:
        return self.live.items if self.live is not None else []

    def create_live(self) -> LiveCollection:
        return LiveCollection(
            self.store,
            TABLE,
            fetch_contact_channels,
            relevant=visible_row_changed("is_active"),
            error_message=LOAD_ERROR,
            name="contact",
        )
