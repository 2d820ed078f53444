"""
Prayer slot storage and record types.

- PrayerTimeRow: SQLAlchemy table prayer_times (one row per configured prayer).
- PrayerSlot: validated record built from a row dict; times are parsed to datetime.time.
"""
from datetime import datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, Time

from masjid.core.db import Base, utc_now

TABLE = "prayer_times"

WEEKLY_PRAYER = "Jummah"


class PrayerTimeRow(Base):
    __tablename__ = TABLE

    id = Column(String(36), primary_key=True)
    prayer_name = Column(String(64), nullable=False)
    adhan_time = Column(Time, nullable=True)  # call to prayer, informational
    iqama_time = Column(Time, nullable=False)  # congregation, used for next-prayer
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    display_order = Column(Integer, default=0, nullable=False)
    notes = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=False), default=utc_now, onupdate=utc_now, nullable=False)


class PrayerSlot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    prayer_name: str
    adhan_time: Optional[time] = None
    iqama_time: time
    is_active: bool = True
    display_order: int = 0
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None
