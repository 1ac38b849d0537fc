"""Teaching session model: one time block of a lesson with its staff and room."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from backend.erp.db.base_class import Base


class TeachingSession(Base):
    __tablename__ = "teaching_sessions"

    id = Column(Integer, primary_key=True, index=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id"), nullable=False, index=True)
    subject_type = Column(String(50), nullable=False)
    teacher_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    assistant_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    room_id = Column(Integer, ForeignKey("facilities.id"), nullable=True, index=True)
    # Absolute instants, stored in UTC
    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    lesson = relationship("Lesson", back_populates="sessions")
