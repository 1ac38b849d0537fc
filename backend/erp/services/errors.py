"""Typed error values returned by the scheduling and billing services.

These are plain values rather than exceptions: validation failures are expected,
user-triggered conditions and the request handlers map them to HTTP responses.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class InvalidInput:
    field: str
    message: str


@dataclass(frozen=True)
class InvariantViolation:
    """Payments exceed the invoice total; the upstream payment check was bypassed."""

    overpaid_by: Decimal
    message: str
    invoice_ref: Any = None
