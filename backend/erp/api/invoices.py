"""Invoice routes: creation with line items, issue/cancel, payments and summaries."""

from typing import List

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.erp.core.security import get_current_user
from backend.erp.crud.crud_invoice import invoice_crud
from backend.erp.db.session import get_db
from backend.erp.models.employee import Employee
from backend.erp.models.invoice import Invoice
from backend.erp.models.student import Student
from backend.erp.models.user import User
from backend.erp.schemas.invoice import InvoiceCreate, InvoiceDetail, InvoiceRead, InvoiceUpdate
from backend.erp.schemas.payment import PaymentCreate, PaymentRead
from backend.erp.services.billing import (
    STATUS_CANCELLED,
    STATUS_DRAFT,
    STATUS_SENT,
    apply_due_date_overlay,
    invoice_total,
    reconcile,
    summarize_invoices,
    validate_payment_amount,
)
from backend.erp.services.errors import InvalidInput

router = APIRouter(prefix="/invoices", tags=["invoices"])

logger = structlog.get_logger(__name__)


def _get_owned_invoice(db: Session, invoice_id: int, owner_id: int) -> Invoice:
    invoice = invoice_crud.get(db, invoice_id=invoice_id, owner_id=owner_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


def _serialize_invoice(invoice: Invoice, detail: bool = False) -> dict:
    schema = InvoiceDetail if detail else InvoiceRead
    data = schema.model_validate(invoice).model_dump()
    data["status"] = apply_due_date_overlay(invoice.status, invoice.due_date, invoice.remaining_amount)
    return data


@router.get("/summary")
async def get_invoice_summary(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return summarize_invoices(invoice_crud.get_all(db, owner_id=current_user.id))


@router.post("/reconcile")
async def reconcile_invoices(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Recompute derived amounts and status for every invoice of the account."""
    updated = []
    anomalies = []
    for invoice in invoice_crud.get_all(db, owner_id=current_user.id):
        result = reconcile(
            invoice.total_amount,
            [payment.amount for payment in invoice.payments],
            current_status=invoice.status,
            invoice_ref=invoice.id,
        )
        if isinstance(result, InvalidInput):
            anomalies.append({"invoice_id": invoice.id, "message": result.message})
            continue
        if result.invariant_violation is not None:
            anomalies.append({"invoice_id": invoice.id, "message": result.invariant_violation.message})
        changes = {
            field: value for field, value in result.as_update().items() if getattr(invoice, field) != value
        }
        if changes:
            invoice_crud.apply_reconciliation(db, invoice=invoice, result=result)
            updated.append(invoice.id)
    return {"updated": updated, "anomalies": anomalies}


@router.post("/", response_model=InvoiceDetail, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not payload.description.strip():
        raise HTTPException(status_code=400, detail="Description is required")
    if payload.student_id is not None:
        student = db.query(Student).filter(Student.id == payload.student_id, Student.owner_id == current_user.id).first()
        if not student:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Student not found")
    if payload.employee_id is not None:
        employee = (
            db.query(Employee).filter(Employee.id == payload.employee_id, Employee.owner_id == current_user.id).first()
        )
        if not employee:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Employee not found")

    total = invoice_total(payload.items)
    if isinstance(total, InvalidInput):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=total.message)

    invoice = invoice_crud.create_with_items(db, obj_in=payload, owner_id=current_user.id, total_amount=total)
    logger.info("invoice_created", invoice_id=invoice.id, owner_id=current_user.id, total_amount=str(total))
    return _serialize_invoice(invoice, detail=True)


@router.get("/", response_model=List[InvoiceRead])
async def list_invoices(
    status: str | None = None,
    student_id: int | None = None,
    employee_id: int | None = None,
    is_income: bool | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoices = invoice_crud.get_multi(
        db,
        owner_id=current_user.id,
        status=status,
        student_id=student_id,
        employee_id=employee_id,
        is_income=is_income,
        skip=skip,
        limit=limit,
    )
    return [_serialize_invoice(invoice) for invoice in invoices]


@router.get("/{invoice_id}", response_model=InvoiceDetail)
async def get_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _serialize_invoice(_get_owned_invoice(db, invoice_id, current_user.id), detail=True)


@router.patch("/{invoice_id}", response_model=InvoiceRead)
async def update_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    invoice = invoice_crud.update(db, db_obj=invoice, obj_in=payload)
    return _serialize_invoice(invoice)


@router.post("/{invoice_id}/issue", response_model=InvoiceRead)
async def issue_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    if invoice.status != STATUS_DRAFT:
        raise HTTPException(status_code=400, detail="Only draft invoices can be issued")
    invoice = invoice_crud.set_status(db, db_obj=invoice, status=STATUS_SENT)
    return _serialize_invoice(invoice)


@router.post("/{invoice_id}/cancel", response_model=InvoiceRead)
async def cancel_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    if invoice.payments:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Cannot cancel an invoice with payments")
    invoice = invoice_crud.set_status(db, db_obj=invoice, status=STATUS_CANCELLED)
    return _serialize_invoice(invoice)


@router.delete("/{invoice_id}")
async def delete_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    if invoice.payments:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Cannot delete an invoice with payments")
    invoice_crud.delete(db, db_obj=invoice)
    return {"status": "deleted", "id": invoice_id}


@router.get("/{invoice_id}/payments", response_model=List[PaymentRead])
async def list_invoice_payments(
    invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    return sorted(invoice.payments, key=lambda payment: (payment.created_at, payment.id), reverse=True)


@router.post("/{invoice_id}/payments", response_model=PaymentRead, status_code=status.HTTP_201_CREATED)
async def create_payment_for_invoice(
    invoice_id: int,
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = _get_owned_invoice(db, invoice_id, current_user.id)
    if invoice.status == STATUS_CANCELLED:
        raise HTTPException(status_code=400, detail="Cannot apply payment to a cancelled invoice.")
    if not payload.method.strip():
        raise HTTPException(status_code=400, detail="Payment method is required")

    error = validate_payment_amount(payload.amount, invoice.remaining_amount)
    if error is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)

    payment = invoice_crud.add_payment(db, invoice=invoice, obj_in=payload, owner_id=current_user.id)
    result = reconcile(
        invoice.total_amount,
        [p.amount for p in invoice.payments],
        current_status=invoice.status,
        invoice_ref=invoice.id,
    )
    if isinstance(result, InvalidInput):
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    invoice_crud.apply_reconciliation(db, invoice=invoice, result=result)
    db.refresh(payment)
    logger.info(
        "payment_recorded",
        invoice_id=invoice.id,
        payment_id=payment.id,
        amount=str(payment.amount),
        status=result.status,
    )
    return payment
