"""Audit logging package."""

from expense_tracker.audit.logger import (
    AuditLogger,
    configure_logging,
    create_correlation_id,
)
from expense_tracker.audit.storage import AuditStorageInterface, InMemoryAuditStorage

__all__ = [
    "AuditLogger",
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "configure_logging",
    "create_correlation_id",
]
