"""Invoice schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from backend.erp.schemas.payment import PaymentRead


class InvoiceItemCreate(BaseModel):
    item_name: str
    item_description: Optional[str] = None
    category: str
    quantity: Decimal = Decimal("1")
    unit_price: Decimal


class InvoiceItemRead(InvoiceItemCreate):
    id: int
    total_amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class InvoiceCreate(BaseModel):
    description: str
    notes: Optional[str] = None
    student_id: Optional[int] = None
    employee_id: Optional[int] = None
    is_income: bool = True
    due_date: Optional[datetime] = None
    items: List[InvoiceItemCreate]


class InvoiceUpdate(BaseModel):
    description: Optional[str] = None
    notes: Optional[str] = None
    due_date: Optional[datetime] = None


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    invoice_number: Optional[str]
    student_id: Optional[int]
    employee_id: Optional[int]
    is_income: bool
    description: str
    notes: Optional[str]

    status: str
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    due_date: Optional[datetime]

    created_at: datetime
    updated_at: datetime


class InvoiceDetail(InvoiceRead):
    items: List[InvoiceItemRead]
    payments: List[PaymentRead]
