"""
Shared fixtures.

Every test runs against a fixed "now" (Monday 2026-10-19, 14:30) so
period and trend arithmetic is deterministic.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from expense_tracker.audit import AuditLogger, InMemoryAuditStorage
from expense_tracker.config import LedgerSettings
from expense_tracker.models.transaction import Transaction, TransactionType
from expense_tracker.orchestrator import LedgerEngine
from expense_tracker.store import TransactionStore

NOW = datetime(2026, 10, 19, 14, 30)
TODAY = NOW.date()
CREATED = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    """Default settings, ignoring any .env file on the machine."""
    return LedgerSettings(_env_file=None)


@pytest.fixture
def make_transaction():
    """Factory for complete transaction records."""
    counter = iter(range(1, 10_000))

    def _make(
        transaction_type="expense",
        day=TODAY,
        description="Groceries",
        category="Food",
        amount="10.00",
        notes=None,
        id=None,
    ):
        return Transaction(
            id=id or f"tx-{next(counter)}",
            type=TransactionType(transaction_type),
            transaction_date=day,
            description=description,
            category=category,
            amount=Decimal(str(amount)),
            notes=notes,
            timestamp=CREATED,
            created_at=CREATED,
        )

    return _make


@pytest.fixture
def store():
    return TransactionStore()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def engine(settings, audit_storage):
    """Engine with an empty ledger, a fixed clock and an inspectable audit trail."""
    return LedgerEngine(
        audit_logger=AuditLogger(audit_storage),
        settings=settings,
        clock=lambda: NOW,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def today():
    return TODAY
