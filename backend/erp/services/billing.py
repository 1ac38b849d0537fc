"""Billing service utilities: invoice totals, balance reconciliation and status."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

import structlog

from backend.erp.core.time import ensure_utc, utc_now
from backend.erp.services.errors import InvalidInput, InvariantViolation

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")

STATUS_DRAFT = "draft"
STATUS_SENT = "sent"
STATUS_PARTIAL = "partial"
STATUS_PAID = "paid"
STATUS_OVERDUE = "overdue"
STATUS_CANCELLED = "cancelled"

# Statuses the due-date check may turn into "overdue"
OPEN_STATUSES = (STATUS_SENT, STATUS_PARTIAL)


def money(value: Decimal | float | int | str | None) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Reconciliation:
    paid_amount: Decimal
    remaining_amount: Decimal
    status: str
    invariant_violation: Optional[InvariantViolation] = None

    def as_update(self) -> dict:
        """Derived invoice fields to persist."""
        return {
            "paid_amount": self.paid_amount,
            "remaining_amount": self.remaining_amount,
            "status": self.status,
        }


def line_item_total(quantity: Decimal | float | int, unit_price: Decimal | float | int) -> Decimal:
    return money(Decimal(str(quantity)) * Decimal(str(unit_price)))


def invoice_total(items: Iterable[Any]) -> Decimal | InvalidInput:
    """Sum quantity x unit_price over line items, validating each one."""
    items = list(items)
    if not items:
        return InvalidInput("items", "At least one item is required")

    total = ZERO
    for index, item in enumerate(items):
        field = f"items[{index}]"
        if not getattr(item, "item_name", None) or not getattr(item, "category", None):
            return InvalidInput(field, "Each item must have name, category, and unit price")
        quantity = getattr(item, "quantity", None)
        quantity = Decimal("1") if quantity is None else money(quantity)
        unit_price = getattr(item, "unit_price", None)
        if unit_price is None or money(unit_price) <= ZERO:
            return InvalidInput(field, "Unit price must be at least 0.01")
        if quantity <= 0:
            return InvalidInput(field, "Quantity must be greater than zero")
        line_total = line_item_total(quantity, money(unit_price))
        if line_total <= ZERO:
            return InvalidInput(field, "Line total must be at least 0.01")
        total += line_total

    if total <= ZERO:
        return InvalidInput("items", "Invoice total must be greater than zero")
    return total


def validate_payment_amount(
    amount: Decimal | float | int | None, remaining_amount: Decimal | float | int | None
) -> Optional[InvalidInput]:
    """Reject payments that are not positive or that exceed the open balance."""
    # Amounts are stored with two decimals; anything rounding to 0.00 is rejected
    if amount is None or money(amount) <= ZERO:
        return InvalidInput("amount", "Valid payment amount is required")
    remaining = money(remaining_amount)
    if money(amount) > remaining:
        return InvalidInput("amount", f"Payment amount cannot exceed remaining amount of {remaining}")
    return None


def _amount_status(total: Decimal, paid: Decimal, current_status: Optional[str]) -> str:
    if current_status == STATUS_CANCELLED:
        return STATUS_CANCELLED
    if paid <= ZERO:
        return STATUS_DRAFT if current_status == STATUS_DRAFT else STATUS_SENT
    if paid >= total:
        return STATUS_PAID
    return STATUS_PARTIAL


def reconcile(
    total_amount: Decimal | float | int,
    payment_amounts: Iterable[Decimal | float | int],
    current_status: Optional[str] = None,
    invoice_ref: Any = None,
) -> Reconciliation | InvalidInput:
    """
    Recompute paid/remaining amounts and the amount-driven status of an invoice.

    Never rejects a set of payments. When payments exceed the total, the
    remaining amount is clamped to zero and the overpayment is reported both on
    the result and in the log. The due-date overlay is left to
    ``apply_due_date_overlay``.
    """
    total = money(total_amount)
    if total <= ZERO:
        return InvalidInput("total_amount", "Invoice total must be greater than zero")

    paid = sum((money(amount) for amount in payment_amounts), ZERO)
    remaining = total - paid

    violation = None
    if remaining < ZERO:
        violation = InvariantViolation(
            overpaid_by=-remaining,
            message=f"Payments of {paid} exceed invoice total of {total}",
            invoice_ref=invoice_ref,
        )
        logger.warning(
            "invoice_overpaid",
            invoice=invoice_ref,
            total_amount=str(total),
            paid_amount=str(paid),
            overpaid_by=str(-remaining),
        )
        remaining = ZERO

    return Reconciliation(
        paid_amount=paid,
        remaining_amount=remaining,
        status=_amount_status(total, paid, current_status),
        invariant_violation=violation,
    )


def apply_due_date_overlay(
    status: str,
    due_date: datetime | None,
    remaining_amount: Decimal | float | int | None,
    now: datetime | None = None,
) -> str:
    if status not in OPEN_STATUSES or due_date is None:
        return status
    check_date = now or utc_now()
    if check_date > ensure_utc(due_date) and money(remaining_amount) > ZERO:
        return STATUS_OVERDUE
    return status


def summarize_invoices(invoices: Iterable[Any]) -> dict:
    """Collected income and expense, outstanding balances and net result."""
    total_income = ZERO
    total_expense = ZERO
    receivable = ZERO
    payable = ZERO

    for invoice in invoices:
        if invoice.status == STATUS_CANCELLED:
            continue
        paid = money(invoice.paid_amount)
        outstanding = money(invoice.remaining_amount) if invoice.status in OPEN_STATUSES else ZERO
        if invoice.is_income:
            total_income += paid
            receivable += outstanding
        else:
            total_expense += paid
            payable += outstanding

    return {
        "total_income": str(total_income),
        "total_expense": str(total_expense),
        "outstanding_receivable": str(receivable),
        "outstanding_payable": str(payable),
        "net_profit": str(total_income - total_expense),
    }
