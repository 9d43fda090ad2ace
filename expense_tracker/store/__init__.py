"""Transaction store package."""

from expense_tracker.store.memory import DuplicateIdError, TransactionStore

__all__ = ["DuplicateIdError", "TransactionStore"]
