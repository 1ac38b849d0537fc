"""Payment schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PaymentCreate(BaseModel):
    amount: Decimal
    method: str
    payment_date: date
    reference: Optional[str] = None
    notes: Optional[str] = None


class PaymentRead(PaymentCreate):
    id: int
    owner_id: int
    invoice_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
