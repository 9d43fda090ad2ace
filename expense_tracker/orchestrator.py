"""
Ledger Engine

This module ties together all the components and defines the commands
a presentation layer can issue:
1. Add / update / delete / look up a transaction
2. Clear the ledger
3. Import (merge or replace) and export documents
4. Generate the text report
5. Change filters, the current page and the chart period

DESIGN DECISION: The engine enforces the boundaries:
- No field values reach the store without passing the validator
- No command raises; every outcome is a CommandResult
- A failed command leaves the store exactly as it was
- Every command is audited
- Derived views are recomputed and pushed after every change

CONCURRENCY: The engine is single-threaded and synchronous. Each command
runs to completion before the next. A concurrent host must serialize
commands (one lock or one command queue around the engine).
"""

from collections.abc import Callable
from datetime import date, datetime
from typing import Any, Optional, Union
from uuid import UUID

from pydantic import ValidationError as SchemaValidationError

from expense_tracker.analytics import Aggregator
from expense_tracker.audit import (
    AuditLogger,
    AuditStorageInterface,
    InMemoryAuditStorage,
    configure_logging,
    create_correlation_id,
)
from expense_tracker.config import LedgerSettings, get_settings
from expense_tracker.errors import (
    FormatError,
    LedgerError,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)
from expense_tracker.models.transaction import (
    Transaction,
    TransactionFields,
    TransactionType,
    utc_now,
)
from expense_tracker.models.views import (
    CommandResult,
    ImportMode,
    LedgerSnapshot,
    Page,
    Period,
    QueryCriteria,
)
from expense_tracker.queries import QueryExecutor
from expense_tracker.queries.periods import as_date
from expense_tracker.reports import ReportGenerator
from expense_tracker.store import TransactionStore
from expense_tracker.transfer import ImportExportCoordinator
from expense_tracker.validation import TransactionValidator

Listener = Callable[[LedgerSnapshot], None]


class LedgerEngine:
    """
    Owns one ledger and every component that reads or writes it.

    Construct one explicitly and pass it to whatever needs it; there is
    no module-level instance.
    """

    def __init__(
        self,
        store: Optional[TransactionStore] = None,
        validator: Optional[TransactionValidator] = None,
        query_executor: Optional[QueryExecutor] = None,
        aggregator: Optional[Aggregator] = None,
        report_generator: Optional[ReportGenerator] = None,
        coordinator: Optional[ImportExportCoordinator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._settings = settings or get_settings()
        self._store = store if store is not None else TransactionStore()
        self._validator = validator or TransactionValidator(self._settings)
        self._query_executor = query_executor or QueryExecutor()
        self._aggregator = aggregator or Aggregator()
        self._report_generator = report_generator or ReportGenerator()
        self._coordinator = coordinator or ImportExportCoordinator(
            validator=self._validator,
            settings=self._settings,
        )
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock or datetime.now

        self._criteria = QueryCriteria()
        self._current_page = 1
        self._chart_period = Period.NONE
        self._listeners: list[Listener] = []

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def store(self) -> TransactionStore:
        return self._store

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    @property
    def criteria(self) -> QueryCriteria:
        return self._criteria

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def chart_period(self) -> Period:
        return self._chart_period

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return as_date(self._clock())

    # -------------------------------------------------------------------------
    # Subscribers
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for fresh snapshots.

        Listeners are called after every successful mutation and after
        filter, page and chart-period changes. Returns an unsubscribe function.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                # A broken view must not fail a command that already succeeded
                self._audit_logger.log_error(
                    error_type="listener_failed",
                    error_message=str(e),
                    details={"listener": repr(listener)},
                )

    # -------------------------------------------------------------------------
    # Command plumbing
    # -------------------------------------------------------------------------

    def _execute(
        self,
        operation: str,
        command: Callable[[], CommandResult],
        correlation_id: UUID,
        failure_message: str,
        notify: bool = True,
    ) -> CommandResult:
        """
        Run a command and turn every outcome into a CommandResult.

        Expected errors are audited by kind; anything else is logged as a
        system error and reported with a generic message.
        """
        try:
            result = command()
        except ValidationError as e:
            self._audit_logger.log_validation_failed(
                field=e.field or "unknown",
                issue_type=e.issue_type or "invalid_value",
                reason=e.reason,
                correlation_id=correlation_id,
            )
            return CommandResult.failed(e)
        except NotFoundError as e:
            self._audit_logger.log_not_found(
                transaction_id=e.transaction_id,
                operation=operation,
                correlation_id=correlation_id,
            )
            return CommandResult.failed(e, transaction_id=e.transaction_id)
        except FormatError as e:
            self._audit_logger.log_import_rejected(
                reason=e.message,
                correlation_id=correlation_id,
            )
            return CommandResult.failed(e)
        except Exception as e:
            self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"operation": operation},
                correlation_id=correlation_id,
            )
            return CommandResult.failed(UnexpectedError(failure_message))

        if notify:
            self._publish()
        return result

    def _validated_fields(
        self,
        transaction_type: Union[TransactionType, str],
        transaction_date: Any,
        description: Optional[str],
        category: Optional[str],
        amount: Any,
        notes: Optional[str],
    ) -> TransactionFields:
        result = self._validator.validate(
            transaction_type,
            transaction_date,
            description,
            category,
            amount,
            notes=notes,
            today=self.today(),
        )
        if not result.is_valid:
            raise ValidationError(
                result.reason,
                field=result.issue.field,
                issue_type=result.issue.issue_type,
            )
        return result.normalized

    # -------------------------------------------------------------------------
    # Transaction commands
    # -------------------------------------------------------------------------

    def add_transaction(
        self,
        transaction_type: Union[TransactionType, str],
        transaction_date: Any,
        description: Optional[str],
        category: Optional[str],
        amount: Any,
        notes: Optional[str] = None,
    ) -> CommandResult:
        """
        Validate field values and record a new transaction.

        Returns:
            CommandResult with the new id and record on success
        """
        correlation_id = create_correlation_id()

        def command() -> CommandResult:
            fields = self._validated_fields(
                transaction_type, transaction_date, description, category, amount, notes
            )
            created = utc_now()
            record = Transaction(
                id=self._store.new_id(),
                type=TransactionType(transaction_type),
                transaction_date=fields.transaction_date,
                description=fields.description,
                category=fields.category,
                amount=fields.amount,
                notes=fields.notes,
                timestamp=created,
                created_at=created,
            )
            self._store.add(record)

            self._audit_logger.log_transaction_added(
                transaction_id=record.id,
                transaction_type=record.type.value,
                amount=f"{record.amount:.2f}",
                correlation_id=correlation_id,
            )
            return CommandResult.ok(
                f"{record.type.value.capitalize()} of ${record.amount:.2f} added successfully!",
                transaction_id=record.id,
                transaction=record,
                count=1,
            )

        return self._execute(
            "add", command, correlation_id,
            "Failed to add transaction. Please try again.",
        )

    def get_transaction(self, transaction_id: str) -> CommandResult:
        """Look up one record, e.g. to pre-fill an edit form."""
        correlation_id = create_correlation_id()

        def command() -> CommandResult:
            record = self._store.get(transaction_id)
            return CommandResult.ok(
                "Transaction found.",
                transaction_id=record.id,
                transaction=record,
                count=1,
            )

        return self._execute(
            "edit", command, correlation_id,
            "Failed to load transaction. Please try again.",
            notify=False,
        )

    def update_transaction(
        self,
        transaction_id: str,
        transaction_date: Any,
        description: Optional[str],
        category: Optional[str],
        amount: Any,
        notes: Optional[str] = None,
    ) -> CommandResult:
        """
        Replace the editable fields of an existing record.

        The record's type decides which categories are valid. id, type and
        created_at never change; updated_at is stamped.
        """
        correlation_id = create_correlation_id()

        def command() -> CommandResult:
            existing = self._store.get(transaction_id)
            fields = self._validated_fields(
                existing.type, transaction_date, description, category, amount, notes
            )
            changed = [
                name for name, value in fields.model_dump().items()
                if getattr(existing, name) != value
            ]
            updated = self._store.update(transaction_id, fields, updated_at=utc_now())

            self._audit_logger.log_transaction_updated(
                transaction_id=transaction_id,
                changed_fields=changed,
                correlation_id=correlation_id,
            )
            return CommandResult.ok(
                "Transaction updated successfully!",
                transaction_id=updated.id,
                transaction=updated,
                count=1,
            )

        return self._execute(
            "update", command, correlation_id,
            "Failed to update transaction. Please try again.",
        )

    def delete_transaction(self, transaction_id: str) -> CommandResult:
        """Remove one record. Unknown ids fail with not_found."""
        correlation_id = create_correlation_id()

        def command() -> CommandResult:
            removed = self._store.remove(transaction_id)

            self._audit_logger.log_transaction_deleted(
                transaction_id=removed.id,
                transaction_type=removed.type.value,
                amount=f"{removed.amount:.2f}",
                correlation_id=correlation_id,
            )
            return CommandResult.ok(
                f"{removed.type.value.capitalize()} of ${removed.amount:.2f} deleted successfully!",
                transaction_id=removed.id,
                transaction=removed,
                count=1,
            )

        return self._execute(
            "delete", command, correlation_id,
            "Failed to delete transaction. Please try again.",
        )

    def clear_all(self) -> CommandResult:
        """Remove every record. The audit trail is kept."""
        correlation_id = create_correlation_id()

        def command() -> CommandResult:
            removed = self._store.clear()
            self._audit_logger.log_ledger_cleared(
                removed_count=removed,
                correlation_id=correlation_id,
            )
            return CommandResult.ok("All data cleared successfully!", count=removed)

        return self._execute(
            "clear", command, correlation_id,
            "Failed to clear data. Please try again.",
        )

    # -------------------------------------------------------------------------
    # Import / export / report
    # -------------------------------------------------------------------------

    def inspect_import(self, document: Union[dict, str, bytes]) -> CommandResult:
        """
        Parse a document without touching the ledger.

        Lets the host ask "This will import N transactions. Continue?"
        before choosing a mode.
        """
        correlation_id = create_correlation_id()

        def command() -> CommandResult:
            records = self._coordinator.deserialize(document)
            return CommandResult.ok(
                f"This will import {len(records)} transactions.",
                count=len(records),
            )

        return self._execute(
            "inspect_import", command, correlation_id,
            "Invalid file format. Please select a valid backup file.",
            notify=False,
        )

    def import_document(
        self,
        document: Union[dict, str, bytes],
        mode: Union[ImportMode, str] = ImportMode.MERGE,
    ) -> CommandResult:
        """
        Reconcile an export document into the ledger.

        MERGE appends records under fresh ids; REPLACE adopts them verbatim.
        """
        correlation_id = create_correlation_id()

        def command() -> CommandResult:
            import_mode = ImportMode(mode)
            records = self._coordinator.deserialize(document)
            imported = self._coordinator.reconcile(
                self._store, records, import_mode, today=self.today()
            )

            self._audit_logger.log_import_completed(
                mode=import_mode.value,
                imported_count=imported,
                total_count=len(self._store),
                correlation_id=correlation_id,
            )
            return CommandResult.ok("Data imported successfully!", count=imported)

        return self._execute(
            "import", command, correlation_id,
            "Invalid file format. Please select a valid backup file.",
        )

    def export_document(self) -> CommandResult:
        """Serialize the ledger; the JSON text is in result.content."""
        correlation_id = create_correlation_id()

        def command() -> CommandResult:
            document = self._coordinator.serialize(self._store.all(), exported_at=utc_now())

            self._audit_logger.log_export_completed(
                exported_count=len(document.transactions),
                version=document.version,
                correlation_id=correlation_id,
            )
            return CommandResult.ok(
                "Data exported successfully!",
                count=len(document.transactions),
                content=document.to_json(),
                filename=self._coordinator.export_filename(self.today()),
            )

        return self._execute(
            "export", command, correlation_id,
            "Failed to export data. Please try again.",
            notify=False,
        )

    def generate_report(self) -> CommandResult:
        """Build the text report; the document is in result.content."""
        correlation_id = create_correlation_id()

        def command() -> CommandResult:
            transactions = self._store.all()
            now = self.now()
            stats = self._aggregator.compute_stats(transactions, now)
            top_categories = self._aggregator.category_breakdown(
                transactions, limit=self._settings.report_top_categories_limit
            )
            trend = self._aggregator.monthly_trend(
                transactions, now, months=self._settings.trend_months
            )
            report = self._report_generator.generate_report(
                stats, top_categories, trend.buckets, generated_on=self.today()
            )

            self._audit_logger.log_report_generated(
                transaction_count=len(transactions),
                correlation_id=correlation_id,
            )
            return CommandResult.ok(
                "Report generated successfully!",
                count=len(transactions),
                content=report,
                filename=self._report_generator.report_filename(self.today()),
            )

        return self._execute(
            "report", command, correlation_id,
            "Failed to generate report. Please try again.",
            notify=False,
        )

    # -------------------------------------------------------------------------
    # View state
    # -------------------------------------------------------------------------

    def set_criteria(
        self,
        criteria: Optional[QueryCriteria] = None,
        **filters: Any,
    ) -> CommandResult:
        """
        Replace the active filters and go back to page 1.

        Accepts a QueryCriteria or its fields as keyword arguments.
        Unreadable filters leave the current filters and page in place.
        """
        correlation_id = create_correlation_id()

        def command() -> CommandResult:
            if criteria is not None:
                new_criteria = criteria
            else:
                try:
                    new_criteria = QueryCriteria(**filters)
                except SchemaValidationError as e:
                    error = e.errors()[0]
                    field = str(error["loc"][0]) if error["loc"] else "criteria"
                    raise ValidationError(
                        f"'{error.get('input')}' is not a valid {field}.",
                        field=field,
                        issue_type="invalid_value",
                    )

            self._criteria = new_criteria
            self._current_page = 1
            return CommandResult.ok("Filters applied.", page=self.current_page_view())

        return self._execute(
            "filter", command, correlation_id,
            "Failed to apply filters. Please try again.",
        )

    def change_page(self, page: int) -> CommandResult:
        """
        Move to another page.

        Pages below 1 are ignored. Pages past the end are accepted and
        show no items.
        """
        correlation_id = create_correlation_id()
        moved = isinstance(page, int) and not isinstance(page, bool) and page >= 1

        def command() -> CommandResult:
            if not isinstance(page, int) or isinstance(page, bool):
                raise ValidationError(
                    f"'{page}' is not a valid page.",
                    field="page",
                    issue_type="invalid_value",
                )
            if moved:
                self._current_page = page
            return CommandResult.ok(
                f"Showing page {self._current_page}.", page=self.current_page_view()
            )

        return self._execute(
            "paginate", command, correlation_id,
            "Failed to change page. Please try again.",
            notify=moved,
        )

    def set_chart_period(self, period: Union[Period, str, None]) -> CommandResult:
        """
        Choose the period used by the expense distribution chart.

        An empty period or "all" means every transaction.
        """
        correlation_id = create_correlation_id()

        def command() -> CommandResult:
            if period is None or period == "" or period == "all":
                chart_period = Period.NONE
            else:
                try:
                    chart_period = Period(period)
                except ValueError:
                    raise ValidationError(
                        f"'{period}' is not a valid period.",
                        field="period",
                        issue_type="invalid_value",
                    )
            self._chart_period = chart_period
            return CommandResult.ok("Chart period updated.")

        return self._execute(
            "chart_period", command, correlation_id,
            "Failed to change the chart period. Please try again.",
        )

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def filtered_view(self) -> list[Transaction]:
        return self._query_executor.filtered_view(
            self._store.all(), self._criteria, self.now()
        )

    def current_page_view(self) -> Page:
        return self._query_executor.paginate(
            self.filtered_view(), self._current_page, self._settings.page_size
        )

    def snapshot(self) -> LedgerSnapshot:
        """Recompute every derived view from the current ledger."""
        transactions = self._store.all()
        now = self.now()

        return LedgerSnapshot(
            stats=self._aggregator.compute_stats(transactions, now),
            monthly_summary=self._aggregator.current_month_summary(transactions, now),
            category_breakdown=self._aggregator.category_breakdown(
                transactions, limit=self._settings.top_categories_limit
            ),
            expense_distribution=self._aggregator.expense_distribution(
                transactions, self._chart_period, now
            ),
            trend=self._aggregator.monthly_trend(
                transactions, now, months=self._settings.trend_months
            ),
            criteria=self._criteria,
            page=self.current_page_view(),
            category_options=self._query_executor.category_options(transactions),
            transaction_count=len(transactions),
        )


def create_engine(
    settings: Optional[LedgerSettings] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> LedgerEngine:
    """
    Factory function to create a ready-to-use engine.

    Args:
        settings: Engine settings (defaults to environment configuration)
        audit_storage: Where audit events go (defaults to in-memory)
        clock: Source of "now" (defaults to local time)

    Returns:
        A LedgerEngine with an empty ledger
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    if audit_storage is None:
        audit_storage = InMemoryAuditStorage(max_events=settings.audit_history_limit)

    return LedgerEngine(
        audit_logger=AuditLogger(audit_storage),
        settings=settings,
        clock=clock,
    )
