"""
Import / Export Coordinator

Serializes the ledger to a portable, versioned JSON document and
reconciles an external document back into the ledger.

Document shape:
    {
      "transactions": [{"id", "type", "date", "description", "category",
                        "amount", "notes", "timestamp", "createdAt",
                        "updatedAt"}, ...],
      "exportDate": "<ISO-8601>",
      "version": "1.0"
    }

Reconciliation modes:
- MERGE:   imported records get fresh ids and are appended
- REPLACE: the ledger is discarded and imported records are adopted
           verbatim, ids included

DESIGN DECISION: Imports are parsed completely before the store is touched.
A malformed document raises FormatError and the ledger stays as it was.
"""

import json
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError as SchemaValidationError

from expense_tracker.config import LedgerSettings, get_settings
from expense_tracker.errors import FormatError
from expense_tracker.models.transaction import Transaction, utc_now
from expense_tracker.models.views import ExportDocument, ImportMode
from expense_tracker.store import TransactionStore
from expense_tracker.validation import TransactionValidator


class ImportExportCoordinator:
    """
    Moves the ledger in and out of export documents.

    Record-level validation of imports is off by default (records are
    trusted as exported); settings.validate_imports turns it on.
    """

    def __init__(
        self,
        validator: Optional[TransactionValidator] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._settings = settings or get_settings()
        self._validator = validator or TransactionValidator(self._settings)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def serialize(
        self,
        transactions: Iterable[Transaction],
        exported_at: Optional[datetime] = None,
    ) -> ExportDocument:
        """Versioned snapshot of the given records, in store order."""
        return ExportDocument(
            transactions=list(transactions),
            export_date=exported_at or utc_now(),
            version=self._settings.export_version,
        )

    @staticmethod
    def export_filename(day: Optional[date] = None) -> str:
        """Suggested download name, e.g. expense-tracker-backup-2026-10-19.json."""
        return f"expense-tracker-backup-{(day or date.today()).isoformat()}.json"

    # -------------------------------------------------------------------------
    # Import
    # -------------------------------------------------------------------------

    def deserialize(self, document: Union[dict, str, bytes]) -> list[Transaction]:
        """
        Parse an export document into transaction records.

        Accepts an already-decoded dict, a JSON string or raw bytes.

        Raises:
            FormatError: If the document is not JSON, not an object, has no
                         `transactions` list, or holds an unreadable record
        """
        if isinstance(document, bytes):
            try:
                document = document.decode("utf-8")
            except UnicodeDecodeError as e:
                raise FormatError(f"Invalid file format: not UTF-8 text ({e.reason})")

        if isinstance(document, str):
            try:
                document = json.loads(document, parse_float=Decimal)
            except json.JSONDecodeError as e:
                raise FormatError(f"Invalid file format: not valid JSON ({e.msg})")

        if not isinstance(document, dict):
            raise FormatError("Invalid file format: expected a JSON object")

        raw_records = document.get("transactions")
        if not isinstance(raw_records, list):
            raise FormatError("Invalid file format: 'transactions' must be a list")

        records = []
        for position, raw in enumerate(raw_records):
            try:
                records.append(Transaction.model_validate(raw))
            except SchemaValidationError as e:
                raise FormatError(
                    f"Invalid transaction at position {position}: "
                    f"{e.error_count()} field error(s)"
                )
        return records

    def _check_records(self, records: list[Transaction], today: Optional[date]) -> None:
        if not self._settings.validate_imports:
            return
        for record in records:
            result = self._validator.validate(
                record.type,
                record.transaction_date,
                record.description,
                record.category,
                record.amount,
                notes=record.notes,
                today=today,
            )
            if not result.is_valid:
                raise FormatError(f"Transaction {record.id} is invalid: {result.reason}")

    def merge(
        self,
        store: TransactionStore,
        records: list[Transaction],
        today: Optional[date] = None,
    ) -> int:
        """
        Append imported records under fresh ids.

        Existing records are untouched. Returns the number appended.
        """
        self._check_records(records, today)
        renumbered = [record.model_copy(update={"id": store.new_id()}) for record in records]
        store.append_all(renumbered)
        return len(renumbered)

    def replace(
        self,
        store: TransactionStore,
        records: list[Transaction],
        today: Optional[date] = None,
    ) -> int:
        """
        Discard the ledger and adopt imported records verbatim.

        Raises:
            FormatError: If the document repeats an id
        """
        seen: set[str] = set()
        for record in records:
            if record.id in seen:
                raise FormatError(f"Invalid file format: duplicate transaction id {record.id}")
            seen.add(record.id)

        self._check_records(records, today)
        store.replace_all(records)
        return len(records)

    def reconcile(
        self,
        store: TransactionStore,
        records: list[Transaction],
        mode: ImportMode,
        today: Optional[date] = None,
    ) -> int:
        """Apply records to the store in the chosen mode."""
        if ImportMode(mode) == ImportMode.MERGE:
            return self.merge(store, records, today)
        return self.replace(store, records, today)

    # -------------------------------------------------------------------------
    # File boundary
    # -------------------------------------------------------------------------

    def write_file(self, path: Union[str, Path], document: ExportDocument) -> Path:
        """Write a document as pretty-printed JSON. Returns the path written."""
        path = Path(path)
        path.write_text(document.to_json(), encoding="utf-8")
        return path

    def read_file(self, path: Union[str, Path]) -> bytes:
        """Read raw document bytes for deserialize()."""
        return Path(path).read_bytes()
