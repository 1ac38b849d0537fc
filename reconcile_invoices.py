"""Recompute paid/remaining amounts and status of every invoice from its payments."""

import sys

from backend.erp.crud.crud_invoice import invoice_crud
from backend.erp.db.base import Base  # noqa: F401  registers all mappers
from backend.erp.db.session import SessionLocal
from backend.erp.services.billing import reconcile
from backend.erp.services.errors import InvalidInput

dry_run = "--dry-run" in sys.argv[1:]

db = SessionLocal()
try:
    changed = 0
    for invoice in invoice_crud.get_all(db):
        result = reconcile(
            invoice.total_amount,
            [payment.amount for payment in invoice.payments],
            current_status=invoice.status,
            invoice_ref=invoice.id,
        )
        label = invoice.invoice_number or f"#{invoice.id}"
        if isinstance(result, InvalidInput):
            print("SKIP:", label, "->", result.message)
            continue
        if result.invariant_violation is not None:
            print("ANOMALY:", label, "->", result.invariant_violation.message)

        update = result.as_update()
        if all(getattr(invoice, field) == value for field, value in update.items()):
            continue
        changed += 1
        print(
            "UPDATE:",
            label,
            f"status {invoice.status} -> {result.status},",
            f"paid {invoice.paid_amount} -> {result.paid_amount},",
            f"remaining {invoice.remaining_amount} -> {result.remaining_amount}",
        )
        if not dry_run:
            invoice_crud.apply_reconciliation(db, invoice=invoice, result=result)
finally:
    db.close()

print("Done." if not dry_run else "Done (dry run).", changed, "invoice(s) changed")
