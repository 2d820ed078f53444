from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import Boolean, Column, Integer, String, Text

from masjid.core.db import Base

TABLE = "contact_categories"


class ContactCategoryRow(Base):
    """One contact directory entry (e.g. Imam, Facilities)."""
    __tablename__ = TABLE

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    contact_email = Column(String(255), nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)


class ContactChannel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    contact_email: str
    display_order: int = 0
    is_active: bool = True
