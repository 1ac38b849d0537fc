"""Invoice model for billing."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from backend.erp.db.base_class import Base


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    invoice_number = Column(String(32), nullable=True, unique=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    is_income = Column(Boolean, nullable=False, default=True)
    description = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)

    # Derived from items and payments; written only from a reconciliation
    status = Column(String(20), default="draft", nullable=False)
    total_amount = Column(Numeric(14, 2), default=0, nullable=False)
    paid_amount = Column(Numeric(14, 2), default=0, nullable=False)
    remaining_amount = Column(Numeric(14, 2), default=0, nullable=False)

    due_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    items = relationship("InvoiceItem", back_populates="invoice", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="invoice", order_by="Payment.id")
