"""Validation package."""

from expense_tracker.validation.validator import (
    TransactionValidator,
    parse_amount,
    parse_date,
)

__all__ = ["TransactionValidator", "parse_amount", "parse_date"]
