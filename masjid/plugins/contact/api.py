"""
Per-plugin API for the contact directory. Mounted at /api/components/contact/.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from masjid.api.server import require_component

from .models import ContactChannel
from .service import mailto_link

COMPONENT_NAME = "Contact"


class ContactChannelResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    contact_email: str
    mailto: str

    @classmethod
    def from_channel(cls, channel: ContactChannel) -> "ContactChannelResponse":
        return cls(
            id=channel.id,
            name=channel.name,
            description=channel.description,
            contact_email=channel.contact_email,
            mailto=mailto_link(channel),
        )


class ContactResponse(BaseModel):
    state: str
    error: Optional[str] = None
    last_updated: Optional[datetime] = None
    channels: List[ContactChannelResponse]


def get_router(masjid_app) -> Optional[APIRouter]:
    router = APIRouter(tags=["Contact"])

    def _snapshot(component) -> ContactResponse:
        return ContactResponse(
            **component.status(),
            channels=[ContactChannelResponse.from_channel(c) for c in component.channels],
        )

    @router.get("/data", response_model=ContactResponse)
    def get_data() -> ContactResponse:
        return _snapshot(require_component(masjid_app, COMPONENT_NAME))

    @router.post("/refresh", response_model=ContactResponse)
    def refresh() -> ContactResponse:
        component = require_component(masjid_app, COMPONENT_NAME)
        component.refresh()
        return _snapshot(component)

    return router
