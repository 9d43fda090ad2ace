"""
Data Models Package

This package contains all Pydantic models used by the Expense Tracker engine.
All data flowing through the engine must conform to these schemas.
"""

from expense_tracker.models.transaction import (
    ExpenseCategory,
    IncomeCategory,
    Transaction,
    TransactionFields,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    categories_for,
    utc_now,
)
from expense_tracker.models.views import (
    CategoryTotal,
    CommandResult,
    ErrorKind,
    ExportDocument,
    ImportMode,
    LedgerSnapshot,
    MonthlyBucket,
    MonthlySummary,
    Page,
    Period,
    QueryCriteria,
    Stats,
    TrendSeries,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "ExpenseCategory",
    "IncomeCategory",
    "Transaction",
    "TransactionFields",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "categories_for",
    "utc_now",
    # Derived views
    "CategoryTotal",
    "CommandResult",
    "ErrorKind",
    "ExportDocument",
    "ImportMode",
    "LedgerSnapshot",
    "MonthlyBucket",
    "MonthlySummary",
    "Page",
    "Period",
    "QueryCriteria",
    "Stats",
    "TrendSeries",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
