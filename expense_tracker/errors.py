"""
Ledger Error Taxonomy

Every failure the engine can report falls into one of four kinds.
All of them are recoverable: the ledger is left exactly as it was
before the failing command started.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for ledger operations."""

    kind = "unexpected"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Candidate field values were rejected by the validator."""

    kind = "validation"

    def __init__(self, reason: str, field: Optional[str] = None, issue_type: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.field = field
        self.issue_type = issue_type


class NotFoundError(LedgerError):
    """A transaction id references no record in the ledger."""

    kind = "not_found"

    def __init__(self, transaction_id: str, message: Optional[str] = None):
        super().__init__(message or "Transaction not found.")
        self.transaction_id = transaction_id


class FormatError(LedgerError):
    """An import document is malformed."""

    kind = "format"


class UnexpectedError(LedgerError):
    """Catch-all for failures nobody anticipated."""

    kind = "unexpected"
