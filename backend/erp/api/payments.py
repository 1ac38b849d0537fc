"""Payment listing across all invoices of a center."""

from datetime import date
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.erp.core.security import get_current_user
from backend.erp.crud.crud_payment import SORT_COLUMNS, SORT_ORDERS, payment_crud
from backend.erp.db.session import get_db
from backend.erp.models.user import User
from backend.erp.schemas.payment import PaymentRead

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/", response_model=List[PaymentRead])
async def list_payments(
    invoice_id: int | None = None,
    student_id: int | None = None,
    method: str | None = None,
    min_amount: Decimal | None = None,
    max_amount: Decimal | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
    sort_by: str = "payment_date",
    sort_order: str = "desc",
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if sort_by not in SORT_COLUMNS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid sort_by field")
    order = (sort_order or "desc").lower()
    if order not in SORT_ORDERS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid sort_order value")
    if from_date and to_date and from_date > to_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="from_date must not be after to_date")

    return payment_crud.get_multi(
        db,
        owner_id=current_user.id,
        invoice_id=invoice_id,
        student_id=student_id,
        method=method,
        min_amount=min_amount,
        max_amount=max_amount,
        from_date=from_date,
        to_date=to_date,
        sort_by=sort_by,
        sort_order=order,
        skip=skip,
        limit=limit,
    )
