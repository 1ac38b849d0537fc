"""Lesson model: a dated main session of a class, split into teaching sessions."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from backend.erp.db.base_class import Base
from backend.erp.core.time import utc_now


class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    scheduled_date = Column(Date, nullable=False, index=True)
    timezone = Column(String(64), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    school_class = relationship("SchoolClass", back_populates="lessons")
    sessions = relationship(
        "TeachingSession",
        back_populates="lesson",
        cascade="all, delete-orphan",
        order_by="TeachingSession.start_at",
    )
