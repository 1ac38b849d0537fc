"""CRUD operations for invoices and their payments."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from backend.erp.core.time import ensure_utc, utc_now
from backend.erp.models.invoice import Invoice
from backend.erp.models.invoice_item import InvoiceItem
from backend.erp.models.payment import Payment
from backend.erp.schemas.invoice import InvoiceCreate, InvoiceUpdate
from backend.erp.schemas.payment import PaymentCreate
from backend.erp.services.billing import (
    OPEN_STATUSES,
    STATUS_DRAFT,
    STATUS_OVERDUE,
    Reconciliation,
    line_item_total,
    money,
)


def format_invoice_number(invoice_id: int, created_at: datetime) -> str:
    return f"INV-{created_at:%Y%m}-{invoice_id:05d}"


class CRUDInvoice:
    def create_with_items(
        self, db: Session, *, obj_in: InvoiceCreate, owner_id: int, total_amount: Decimal
    ) -> Invoice:
        created_at = utc_now()
        invoice = Invoice(
            owner_id=owner_id,
            student_id=obj_in.student_id,
            employee_id=obj_in.employee_id,
            is_income=obj_in.is_income,
            description=obj_in.description,
            notes=obj_in.notes,
            due_date=ensure_utc(obj_in.due_date) if obj_in.due_date else None,
            status=STATUS_DRAFT,
            total_amount=total_amount,
            paid_amount=Decimal("0.00"),
            remaining_amount=total_amount,
            created_at=created_at,
        )
        invoice.items = [
            InvoiceItem(
                item_name=item.item_name,
                item_description=item.item_description,
                category=item.category,
                quantity=money(item.quantity),
                unit_price=money(item.unit_price),
                total_amount=line_item_total(money(item.quantity), money(item.unit_price)),
            )
            for item in obj_in.items
        ]
        db.add(invoice)
        db.flush()  # obtain invoice id for the invoice number
        invoice.invoice_number = format_invoice_number(invoice.id, created_at)
        db.commit()
        db.refresh(invoice)
        return invoice

    def get(self, db: Session, *, invoice_id: int, owner_id: int) -> Optional[Invoice]:
        return (
            db.query(Invoice)
            .options(selectinload(Invoice.items), selectinload(Invoice.payments))
            .filter(Invoice.id == invoice_id, Invoice.owner_id == owner_id)
            .first()
        )

    def get_multi(
        self,
        db: Session,
        *,
        owner_id: int,
        status: Optional[str] = None,
        student_id: Optional[int] = None,
        employee_id: Optional[int] = None,
        is_income: Optional[bool] = None,
        skip: int = 0,
        limit: int = 50,
        now: Optional[datetime] = None,
    ) -> List[Invoice]:
        query = db.query(Invoice).filter(Invoice.owner_id == owner_id)
        check_date = now or utc_now()
        if status == STATUS_OVERDUE:
            query = query.filter(
                Invoice.status.in_(OPEN_STATUSES),
                Invoice.due_date.isnot(None),
                Invoice.due_date < check_date,
                Invoice.remaining_amount > 0,
            )
        elif status in OPEN_STATUSES:
            # Open invoices past due are reported as overdue instead
            query = query.filter(
                Invoice.status == status,
                or_(Invoice.due_date.is_(None), Invoice.due_date >= check_date),
            )
        elif status:
            query = query.filter(Invoice.status == status)
        if student_id is not None:
            query = query.filter(Invoice.student_id == student_id)
        if employee_id is not None:
            query = query.filter(Invoice.employee_id == employee_id)
        if is_income is not None:
            query = query.filter(Invoice.is_income.is_(is_income))
        query = query.order_by(Invoice.created_at.desc(), Invoice.id.desc())
        return query.offset(skip).limit(limit).all()

    def get_all(self, db: Session, *, owner_id: Optional[int] = None) -> List[Invoice]:
        query = db.query(Invoice).options(selectinload(Invoice.payments))
        if owner_id is not None:
            query = query.filter(Invoice.owner_id == owner_id)
        return query.order_by(Invoice.id.asc()).all()

    def update(self, db: Session, *, db_obj: Invoice, obj_in: InvoiceUpdate) -> Invoice:
        update_data = obj_in.model_dump(exclude_unset=True)
        if update_data.get("due_date") is not None:
            update_data["due_date"] = ensure_utc(update_data["due_date"])
        for field, value in update_data.items():
            setattr(db_obj, field, value)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def set_status(self, db: Session, *, db_obj: Invoice, status: str) -> Invoice:
        db_obj.status = status
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def add_payment(self, db: Session, *, invoice: Invoice, obj_in: PaymentCreate, owner_id: int) -> Payment:
        """Stage a payment row; committed together with the reconciled invoice."""
        payment = Payment(
            owner_id=owner_id,
            invoice_id=invoice.id,
            amount=money(obj_in.amount),
            method=obj_in.method,
            payment_date=obj_in.payment_date,
            reference=obj_in.reference,
            notes=obj_in.notes,
        )
        db.add(payment)
        invoice.payments.append(payment)
        db.flush()
        return payment

    def apply_reconciliation(self, db: Session, *, invoice: Invoice, result: Reconciliation) -> Invoice:
        for field, value in result.as_update().items():
            setattr(invoice, field, value)
        db.commit()
        db.refresh(invoice)
        return invoice

    def delete(self, db: Session, *, db_obj: Invoice) -> Invoice:
        db.delete(db_obj)
        db.commit()
        return db_obj


invoice_crud = CRUDInvoice()
