"""
SQLAlchemy table for events and the EventItem record read from it. Instants are naive UTC.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from masjid.core.db import Base, as_naive_utc, utc_now

TABLE = "events"


class EventRow(Base):
    __tablename__ = TABLE

    id = Column(String(36), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    start_time = Column(DateTime(timezone=False), nullable=False, index=True)
    end_time = Column(DateTime(timezone=False), nullable=True)
    capacity = Column(Integer, nullable=True)
    image_url = Column(String(1024), nullable=True)
    is_published = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=False), default=utc_now, nullable=False)


class EventItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    capacity: Optional[int] = None
    image_url: Optional[str] = None
    is_published: bool = False
    created_at: Optional[datetime] = None

    @field_validator("start_time", "end_time", "created_at")
    @classmethod
    def naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(value)
