"""Query execution package."""

from expense_tracker.queries.executor import QueryExecutor
from expense_tracker.queries.periods import period_start

__all__ = ["QueryExecutor", "period_start"]
