"""Facility model: rooms that lessons are booked into."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from backend.erp.db.base_class import Base
from backend.erp.core.time import utc_now


class Facility(Base):
    __tablename__ = "facilities"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    capacity = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
