# fellowship/services/errors.py
"""Service-level exceptions. API layers translate these into HTTP status codes."""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from fellowship.models.income import RECEIPT_UNIQUE_CONSTRAINT

DUPLICATE_RECEIPT_MESSAGE = (
    "Receipt number already exists for your organization. "
    "Please use a unique number or leave it blank."
)

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


class NotFoundError(LookupError):
    pass


class DuplicateReceiptError(ValueError):
    def __init__(self, message: str = DUPLICATE_RECEIPT_MESSAGE):
        super().__init__(message)


class ConflictError(ValueError):
    """A uniqueness rule other than receipt numbers was violated."""


def is_duplicate_receipt(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    text = str(orig if orig is not None else exc)
    if RECEIPT_UNIQUE_CONSTRAINT in text:
        return True
    # SQLite reports the columns rather than the constraint name
    if "income.organization_id, income.receipt_number" in text:
        return True
    return code == UNIQUE_VIOLATION and "receipt_number" in text
