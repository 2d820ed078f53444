from typing import Any, Dict, Optional

from pydantic import BaseModel, model_validator

from masjid.core.validation import blank_to_none


class AnnouncementForm(BaseModel):
    """Create/edit form. Checks run in display order and stop at the first failure."""

    title: str = ""
    content: str = ""
    image_url: Optional[str] = None

    @model_validator(mode="after")
    def check_required(self) -> "AnnouncementForm":
        if not self.title.strip():
            raise ValueError("Title is required")
        if not self.content.strip():
            raise ValueError("Content is required")
        return self

    def to_row(self) -> Dict[str, Any]:
        return {
            "title": self.title.strip(),
            "content": self.content.strip(),
            "image_url": blank_to_none(self.image_url),
        }
