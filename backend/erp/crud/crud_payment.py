"""Read access to recorded payments. Payments are written through ``CRUDInvoice.add_payment``."""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from backend.erp.models.invoice import Invoice
from backend.erp.models.payment import Payment

SORT_COLUMNS = {
    "payment_date": Payment.payment_date,
    "amount": Payment.amount,
    "id": Payment.id,
}
SORT_ORDERS = ("asc", "desc")


class CRUDPayment:
    def get_multi(
        self,
        db: Session,
        *,
        owner_id: int,
        invoice_id: Optional[int] = None,
        student_id: Optional[int] = None,
        method: Optional[str] = None,
        min_amount: Optional[Decimal] = None,
        max_amount: Optional[Decimal] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        sort_by: str = "payment_date",
        sort_order: str = "desc",
        skip: int = 0,
        limit: int = 50,
    ) -> List[Payment]:
        """Owner-scoped payment listing; ``sort_by``/``sort_order`` must be pre-validated."""
        query = (
            db.query(Payment)
            .join(Invoice, Payment.invoice_id == Invoice.id)
            .filter(Payment.owner_id == owner_id, Invoice.owner_id == owner_id)
        )
        if invoice_id is not None:
            query = query.filter(Payment.invoice_id == invoice_id)
        if student_id is not None:
            query = query.filter(Invoice.student_id == student_id)
        if method:
            query = query.filter(Payment.method == method)
        if min_amount is not None:
            query = query.filter(Payment.amount >= min_amount)
        if max_amount is not None:
            query = query.filter(Payment.amount <= max_amount)
        if from_date is not None:
            query = query.filter(Payment.payment_date >= from_date)
        if to_date is not None:
            query = query.filter(Payment.payment_date <= to_date)

        column = SORT_COLUMNS[sort_by]
        if sort_order == "asc":
            query = query.order_by(column.asc(), Payment.id.asc())
        else:
            query = query.order_by(column.desc(), Payment.id.desc())
        return query.offset(skip).limit(limit).all()


payment_crud = CRUDPayment()
