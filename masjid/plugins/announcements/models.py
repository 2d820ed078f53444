"""
SQLAlchemy table for announcements and the NewsItem record read from it.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy import Boolean, Column, DateTime, String, Text

from masjid.core.db import Base, as_naive_utc, utc_now

TABLE = "announcements"


class AnnouncementRow(Base):
    """One announcement. Only rows with is_published appear in the public list."""
    __tablename__ = TABLE

    id = Column(String(36), primary_key=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(String(1024), nullable=True)
    is_published = Column(Boolean, default=False, nullable=False, index=True)
    published_at = Column(DateTime(timezone=False), default=utc_now, nullable=False, index=True)
    created_at = Column(DateTime(timezone=False), default=utc_now, nullable=False)
    created_by = Column(String(255), nullable=True)


class NewsItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    content: str
    image_url: Optional[str] = None
    is_published: bool = False
    published_at: datetime
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

    @field_validator("published_at", "created_at")
    @classmethod
    def naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(value)
