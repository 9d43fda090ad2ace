"""
Tests for the ledger engine

Test strategy:
1. Every command returns a CommandResult and never raises
2. Failed commands leave the ledger untouched and notify nobody
3. Successful commands are audited and push a fresh snapshot
"""

import json
import logging

import pytest
from datetime import date
from decimal import Decimal

from expense_tracker.audit import InMemoryAuditStorage
from expense_tracker.config import LedgerSettings
from expense_tracker.models.audit import AuditEventType
from expense_tracker.models.views import ErrorKind, ImportMode, Period, QueryCriteria
from expense_tracker.orchestrator import LedgerEngine, create_engine


def add_expense(engine, amount="25.00", category="Food", description="Groceries", day="2026-10-05"):
    return engine.add_transaction("expense", day, description, category, amount)


def add_income(engine, amount="3000", category="Salary", description="Monthly salary", day="2026-10-01"):
    return engine.add_transaction("income", day, description, category, amount)


@pytest.fixture
def snapshots(engine):
    received = []
    engine.subscribe(received.append)
    return received


class TestAddTransaction:
    """Tests for LedgerEngine.add_transaction."""

    def test_add_success(self, engine):
        result = engine.add_transaction("expense", "2026-10-05", " Groceries ", "Food", "25.5", "weekly")
        assert result.success
        assert result.message == "Expense of $25.50 added successfully!"
        assert result.transaction_id in engine.store

        record = engine.store.get(result.transaction_id)
        assert record.description == "Groceries"
        assert record.amount == Decimal("25.5")
        assert record.notes == "weekly"
        assert record.transaction_date == date(2026, 10, 5)
        assert record.updated_at is None
        assert record.created_at == record.timestamp

    def test_add_validation_failure(self, engine, snapshots):
        """Test that a rejected add changes nothing and notifies nobody."""
        result = add_expense(engine, description="ab")
        assert not result.success
        assert result.error_kind == ErrorKind.VALIDATION
        assert result.message == "Description must be at least 3 characters long."
        assert len(engine.store) == 0
        assert snapshots == []

    def test_future_limit_uses_engine_clock(self, engine):
        """Test that 'today' comes from the injected clock."""
        assert add_expense(engine, day="2027-10-19").success
        assert not add_expense(engine, day="2027-10-20").success

    def test_ids_are_unique(self, engine):
        ids = {add_expense(engine).transaction_id for _ in range(50)}
        assert len(ids) == 50

    def test_invalid_type(self, engine):
        result = engine.add_transaction("transfer", "2026-10-05", "Move money", "Other", "5")
        assert result.error_kind == ErrorKind.VALIDATION


class TestUpdateAndDelete:
    """Tests for update, delete and lookup commands."""

    def test_update_success(self, engine):
        tx_id = add_expense(engine).transaction_id
        original = engine.store.get(tx_id)

        result = engine.update_transaction(tx_id, "2026-10-06", "Supermarket", "Shopping", "40")

        assert result.success
        assert result.message == "Transaction updated successfully!"
        updated = engine.store.get(tx_id)
        assert updated.description == "Supermarket"
        assert updated.category == "Shopping"
        assert updated.type == original.type
        assert updated.created_at == original.created_at
        assert updated.updated_at is not None

    def test_update_checks_category_against_record_type(self, engine):
        """Test that an expense cannot be given an income category."""
        tx_id = add_expense(engine).transaction_id
        result = engine.update_transaction(tx_id, "2026-10-06", "Supermarket", "Salary", "40")
        assert result.error_kind == ErrorKind.VALIDATION
        assert engine.store.get(tx_id).category == "Food"

    def test_update_unknown_id(self, engine):
        result = engine.update_transaction("missing", "2026-10-06", "Supermarket", "Food", "40")
        assert result.error_kind == ErrorKind.NOT_FOUND
        assert result.transaction_id == "missing"

    def test_delete_success(self, engine):
        tx_id = add_expense(engine, amount="12").transaction_id
        result = engine.delete_transaction(tx_id)
        assert result.success
        assert result.message == "Expense of $12.00 deleted successfully!"
        assert tx_id not in engine.store
        assert all(t.id != tx_id for t in engine.current_page_view().items)

    def test_delete_unknown_id(self, engine, snapshots):
        """Test that deleting an unknown id fails and leaves the size unchanged."""
        add_expense(engine)
        snapshots.clear()

        result = engine.delete_transaction("missing")

        assert result.error_kind == ErrorKind.NOT_FOUND
        assert result.message == "Transaction not found."
        assert len(engine.store) == 1
        assert snapshots == []

    def test_get_transaction(self, engine):
        tx_id = add_income(engine).transaction_id
        result = engine.get_transaction(tx_id)
        assert result.success
        assert result.transaction.category == "Salary"
        assert engine.get_transaction("missing").error_kind == ErrorKind.NOT_FOUND

    def test_clear_all(self, engine):
        add_expense(engine)
        add_income(engine)
        result = engine.clear_all()
        assert result.success
        assert result.count == 2
        assert len(engine.store) == 0


class TestImportExport:
    """Tests for the import, export and report commands."""

    def test_export(self, engine):
        add_expense(engine)
        result = engine.export_document()
        assert result.success
        assert result.count == 1
        assert result.filename == "expense-tracker-backup-2026-10-19.json"
        assert json.loads(result.content)["transactions"][0]["category"] == "Food"

    def test_merge_import(self, engine):
        add_expense(engine)
        add_income(engine)
        exported = engine.export_document().content

        result = engine.import_document(exported, ImportMode.MERGE)

        assert result.success
        assert result.count == 2
        assert len(engine.store) == 4
        assert len({t.id for t in engine.store.all()}) == 4

    def test_replace_import(self, engine):
        add_expense(engine)
        exported = engine.export_document().content
        add_expense(engine)
        add_expense(engine)

        result = engine.import_document(exported, "replace")

        assert result.success
        assert len(engine.store) == 1
        assert json.loads(exported)["transactions"][0]["id"] == engine.store.all()[0].id

    def test_replace_import_restores_exported_ledger(self, engine):
        """Test that a long-precision amount survives export then replace."""
        result = add_expense(engine, amount="0.12345678901234567891")
        add_income(engine, amount="1234.565")
        assert engine.store.get(result.transaction_id).amount == Decimal("0.12")
        before = engine.store.all()

        exported = engine.export_document().content
        engine.import_document(exported, ImportMode.REPLACE)

        assert engine.store.all() == before

    def test_malformed_import_changes_nothing(self, engine, snapshots):
        add_expense(engine)
        snapshots.clear()

        result = engine.import_document("{broken", ImportMode.REPLACE)

        assert result.error_kind == ErrorKind.FORMAT
        assert len(engine.store) == 1
        assert snapshots == []

    def test_inspect_import(self, engine):
        add_expense(engine)
        exported = engine.export_document().content
        result = engine.inspect_import(exported)
        assert result.count == 1
        assert result.message == "This will import 1 transactions."
        assert len(engine.store) == 1

    def test_generate_report(self, engine):
        add_income(engine, amount="1000")
        add_expense(engine, amount="665")
        result = engine.generate_report()
        assert result.success
        assert result.filename == "expense-report-2026-10-19.txt"
        assert "Savings Rate: 34%" in result.content
        assert "1. Food: 665.00" in result.content
        assert "October 2026: Income 1000.00, Expenses 665.00, Net 335.00" in result.content
        assert result.content.count("Income ") == 12


class TestViewState:
    """Tests for filters, pages and snapshots."""

    def test_set_criteria_resets_page(self, engine):
        for _ in range(25):
            add_expense(engine)
        engine.change_page(3)

        result = engine.set_criteria(search_text="grocer")

        assert result.success
        assert engine.current_page == 1
        assert result.page.page == 1
        assert result.page.total_items == 25

    def test_set_criteria_rejects_unknown_period(self, engine, snapshots):
        """Test that an unreadable filter keeps the current filters and page."""
        for _ in range(25):
            add_expense(engine)
        engine.set_criteria(type="expense")
        engine.change_page(2)
        snapshots.clear()

        result = engine.set_criteria(period="decade")

        assert not result.success
        assert result.error_kind == ErrorKind.VALIDATION
        assert result.message == "'decade' is not a valid period."
        assert engine.criteria.type == "expense"
        assert engine.current_page == 2
        assert snapshots == []

    def test_set_criteria_rejects_unknown_type(self, engine, audit_storage):
        result = engine.set_criteria(type="transfer")
        assert result.error_kind == ErrorKind.VALIDATION
        event = audit_storage.get_recent_events(limit=1)[0]
        assert event.event_type == AuditEventType.VALIDATION_FAILED
        assert event.details["field"] == "type"

    def test_change_page_ignores_low_pages(self, engine):
        engine.change_page(2)
        result = engine.change_page(0)
        assert result.success
        assert engine.current_page == 2
        assert result.page.page == 2

    def test_change_page_rejects_non_numbers(self, engine):
        engine.change_page(2)
        result = engine.change_page("next")
        assert result.error_kind == ErrorKind.VALIDATION
        assert engine.current_page == 2

    def test_pages_past_the_end_are_empty(self, engine):
        for _ in range(25):
            add_expense(engine)
        page = engine.change_page(4).page
        assert page.items == []
        assert page.total_pages == 3

    def test_snapshot(self, engine):
        add_income(engine, amount="1000")
        add_expense(engine, amount="300", category="Food")
        add_expense(engine, amount="100", category="Travel", day="2026-08-01", description="Train tickets")
        engine.set_criteria(QueryCriteria(type="expense"))

        snapshot = engine.snapshot()

        assert snapshot.stats.net_balance == Decimal("600")
        assert snapshot.monthly_summary.expenses == Decimal("300")
        assert [c.name for c in snapshot.category_breakdown] == ["Food", "Travel"]
        assert len(snapshot.trend) == 12
        assert snapshot.page.total_items == 2
        assert snapshot.category_options == ["Salary", "Food", "Travel"]
        assert snapshot.transaction_count == 3

    def test_chart_period(self, engine):
        add_expense(engine, amount="100", category="Travel", day="2026-08-01", description="Train tickets")
        add_expense(engine, amount="10", category="Food")
        assert engine.set_chart_period(Period.MONTH).success
        assert [c.name for c in engine.snapshot().expense_distribution] == ["Food"]

        engine.set_chart_period("all")
        assert [c.name for c in engine.snapshot().expense_distribution] == ["Travel", "Food"]

    def test_chart_period_rejects_unknown_period(self, engine, snapshots):
        """Test that an unknown chart period keeps the current one."""
        engine.set_chart_period("month")
        snapshots.clear()

        result = engine.set_chart_period("decade")

        assert result.error_kind == ErrorKind.VALIDATION
        assert result.message == "'decade' is not a valid period."
        assert engine.chart_period == Period.MONTH
        assert snapshots == []


class TestListeners:
    """Tests for snapshot notifications."""

    def test_one_notification_per_mutation(self, engine, snapshots):
        tx_id = add_expense(engine).transaction_id
        engine.update_transaction(tx_id, "2026-10-06", "Supermarket", "Food", "30")
        engine.delete_transaction(tx_id)
        assert len(snapshots) == 3
        assert snapshots[-1].transaction_count == 0

    def test_reads_do_not_notify(self, engine, snapshots):
        engine.export_document()
        engine.generate_report()
        engine.get_transaction("missing")
        assert snapshots == []

    def test_unsubscribe(self, engine):
        received = []
        unsubscribe = engine.subscribe(received.append)
        unsubscribe()
        add_expense(engine)
        assert received == []

    def test_broken_listener_does_not_fail_command(self, engine, audit_storage):
        def broken(snapshot):
            raise RuntimeError("render failed")

        engine.subscribe(broken)
        result = add_expense(engine)

        assert result.success
        errors = [e for e in audit_storage.get_recent_events() if e.event_type == AuditEventType.SYSTEM_ERROR]
        assert len(errors) == 1


class TestFailClosed:
    """Tests for unexpected failures."""

    def test_unexpected_error_is_wrapped(self, engine, audit_storage, monkeypatch):
        """Test that an internal failure becomes an unexpected result."""
        add_expense(engine)

        def explode():
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(engine.store, "clear", explode)
        result = engine.clear_all()

        assert not result.success
        assert result.error_kind == ErrorKind.UNEXPECTED
        assert result.message == "Failed to clear data. Please try again."
        assert len(engine.store) == 1
        event = audit_storage.get_recent_events(limit=1)[0]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.error_message == "disk on fire"


class TestAuditTrail:
    """Tests for the events each command leaves behind."""

    def test_events_per_command(self, engine, audit_storage):
        tx_id = add_expense(engine).transaction_id
        add_expense(engine, amount="0")
        engine.delete_transaction("missing")
        engine.delete_transaction(tx_id)

        types = [e.event_type for e in reversed(audit_storage.get_recent_events())]
        assert types == [
            AuditEventType.TRANSACTION_ADDED,
            AuditEventType.VALIDATION_FAILED,
            AuditEventType.TRANSACTION_NOT_FOUND,
            AuditEventType.TRANSACTION_DELETED,
        ]

    def test_validation_event_names_field(self, engine, audit_storage):
        add_expense(engine, amount="0")
        event = audit_storage.get_recent_events(limit=1)[0]
        assert event.details["field"] == "amount"

    def test_update_records_changed_fields(self, engine, audit_storage):
        tx_id = add_expense(engine).transaction_id
        engine.update_transaction(tx_id, "2026-10-05", "Groceries", "Food", "99")
        event = audit_storage.get_recent_events(limit=1)[0]
        assert event.event_type == AuditEventType.TRANSACTION_UPDATED
        assert event.details["changed_fields"] == ["amount"]


class TestCreateEngine:
    """Tests for the factory."""

    def test_create_engine(self):
        storage = InMemoryAuditStorage()
        engine = create_engine(
            settings=LedgerSettings(_env_file=None, page_size=5),
            audit_storage=storage,
            clock=lambda: date(2026, 10, 19),
        )
        for _ in range(6):
            add_expense(engine)
        assert isinstance(engine, LedgerEngine)
        assert engine.current_page_view().total_pages == 2
        assert len(storage) == 6

    def test_create_engine_applies_log_level(self):
        """Test that the configured level reaches the package logger."""
        package_logger = logging.getLogger("expense_tracker")
        try:
            create_engine(settings=LedgerSettings(_env_file=None, log_level="WARNING"))
            assert package_logger.level == logging.WARNING
        finally:
            package_logger.setLevel(logging.NOTSET)

    def test_create_engine_caps_audit_history(self):
        settings = LedgerSettings(_env_file=None, audit_history_limit=3, log_level="INFO")
        try:
            engine = create_engine(settings=settings, clock=lambda: date(2026, 10, 19))
            for _ in range(5):
                add_expense(engine)
            assert len(engine.audit_logger.storage) == 3
        finally:
            logging.getLogger("expense_tracker").setLevel(logging.NOTSET)
