"""Employee model: teachers and teaching assistants."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from backend.erp.db.base_class import Base
from backend.erp.core.time import utc_now


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    full_name = Column(String, nullable=False)
    position = Column(String(100), nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String(50), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)
