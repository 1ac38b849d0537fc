"""Class group model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from backend.erp.db.base_class import Base
from backend.erp.core.time import utc_now


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    class_name = Column(String, nullable=False)
    facility_id = Column(Integer, ForeignKey("facilities.id"), nullable=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, nullable=False, default=utc_now)

    facility = relationship("Facility")
    lessons = relationship("Lesson", back_populates="school_class", cascade="all, delete-orphan")
