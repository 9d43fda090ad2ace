"""
Audit Logger

DESIGN DECISION: Every engine command is logged.
This provides:
1. Complete traceability of ledger changes
2. Debugging capability when a command fails
3. A history the user can review

The audit logger:
- Gracefully handles failures (a broken sink never fails a command)
- Supports correlation IDs to trace the events of one command
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.audit.storage import AuditStorageInterface
from expense_tracker.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route structlog output through the stdlib root logger.

    The level also applies to the expense_tracker logger tree, so it
    holds even when the host configured the root logger first.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=log_level)
    logging.getLogger("expense_tracker").setLevel(log_level)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend (for history), when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("expense_tracker.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is not None:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_transaction_added(
        self,
        transaction_id: str,
        transaction_type: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_transaction_updated(
        self,
        transaction_id: str,
        changed_fields: list[str],
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        ))

    def log_transaction_deleted(
        self,
        transaction_id: str,
        transaction_type: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_not_found(
        self,
        transaction_id: str,
        operation: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.transaction_not_found(
            transaction_id=transaction_id,
            operation=operation,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        field: str,
        issue_type: str,
        reason: str,
        correlation_id: UUID,
        transaction_id: Optional[str] = None,
    ) -> None:
        self.log(AuditEventBuilder.validation_failed(
            field=field,
            issue_type=issue_type,
            reason=reason,
            correlation_id=correlation_id,
            transaction_id=transaction_id,
        ))

    def log_ledger_cleared(
        self,
        removed_count: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.ledger_cleared(
            removed_count=removed_count,
            correlation_id=correlation_id,
        ))

    def log_import_completed(
        self,
        mode: str,
        imported_count: int,
        total_count: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.import_completed(
            mode=mode,
            imported_count=imported_count,
            total_count=total_count,
            correlation_id=correlation_id,
        ))

    def log_import_rejected(
        self,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.import_rejected(
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_export_completed(
        self,
        exported_count: int,
        version: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.export_completed(
            exported_count=exported_count,
            version=version,
            correlation_id=correlation_id,
        ))

    def log_report_generated(
        self,
        transaction_count: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.report_generated(
            transaction_count=transaction_count,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user command.
    Pass it through all subsequent operations.
    """
    return uuid4()
