"""Student model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from backend.erp.db.base_class import Base
from backend.erp.core.time import utc_now


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    full_name = Column(String, nullable=False)
    parent_name = Column(String, nullable=True)
    phone = Column(String(50), nullable=True)
    status = Column(String, nullable=False, default="active")
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)
