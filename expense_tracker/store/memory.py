"""
In-Memory Transaction Store

DESIGN DECISION: The store is the single source of truth for the ledger.
It keeps records in insertion order; any other ordering (newest first,
by amount) is a derived view built by the query engine.

GUARANTEES:
- Every id in the store is unique
- An id is never issued twice, even after its record is deleted
- Every mutation is all-or-nothing: a failing call leaves the store as it was
"""

from collections.abc import Iterable, Iterator
from datetime import datetime
from typing import Optional
from uuid import uuid4

from expense_tracker.errors import LedgerError, NotFoundError
from expense_tracker.models.transaction import (
    Transaction,
    TransactionFields,
    utc_now,
)


class DuplicateIdError(LedgerError):
    """Attempted to insert a record whose id is already taken."""

    def __init__(self, transaction_id: str):
        super().__init__(f"Duplicate transaction id: {transaction_id}")
        self.transaction_id = transaction_id


class TransactionStore:
    """
    Ordered collection of transaction records.

    Records are pydantic models; the store swaps whole records
    instead of mutating them attribute by attribute.
    """

    def __init__(self, records: Optional[Iterable[Transaction]] = None):
        self._records: list[Transaction] = []
        self._issued_ids: set[str] = set()
        if records is not None:
            self.replace_all(records)

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    def new_id(self) -> str:
        """
        Issue a fresh transaction id.

        uuid4 collisions are astronomically unlikely, but the id is still
        checked against every id this store has ever seen.
        """
        while True:
            candidate = str(uuid4())
            if candidate not in self._issued_ids:
                self._issued_ids.add(candidate)
                return candidate

    def _index_of(self, transaction_id: str) -> int:
        for index, record in enumerate(self._records):
            if record.id == transaction_id:
                return index
        raise NotFoundError(transaction_id)

    def _check_unique(self, records: list[Transaction], existing: Iterable[Transaction]) -> None:
        seen = {record.id for record in existing}
        for record in records:
            if record.id in seen:
                raise DuplicateIdError(record.id)
            seen.add(record.id)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def all(self) -> list[Transaction]:
        """All records in insertion order (a copy; safe to sort or filter)."""
        return list(self._records)

    def get(self, transaction_id: str) -> Transaction:
        """
        Retrieve a record by id.

        Raises:
            NotFoundError: If no record has this id
        """
        return self._records[self._index_of(transaction_id)]

    def find(self, transaction_id: str) -> Optional[Transaction]:
        """Retrieve a record by id, or None."""
        try:
            return self.get(transaction_id)
        except NotFoundError:
            return None

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, transaction_id: object) -> bool:
        return any(record.id == transaction_id for record in self._records)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(list(self._records))

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add(self, record: Transaction) -> str:
        """
        Append a complete record.

        Returns:
            The record's id

        Raises:
            DuplicateIdError: If the id is already in the store
        """
        self._check_unique([record], self._records)
        self._records.append(record)
        self._issued_ids.add(record.id)
        return record.id

    def update(
        self,
        transaction_id: str,
        fields: TransactionFields,
        updated_at: Optional[datetime] = None,
    ) -> Transaction:
        """
        Replace the editable fields of a record.

        id, type and created_at are kept; updated_at is stamped.

        Raises:
            NotFoundError: If no record has this id
        """
        index = self._index_of(transaction_id)
        updated = self._records[index].model_copy(update={
            "transaction_date": fields.transaction_date,
            "description": fields.description,
            "category": fields.category,
            "amount": fields.amount,
            "notes": fields.notes,
            "updated_at": updated_at or utc_now(),
        })
        self._records[index] = updated
        return updated

    def remove(self, transaction_id: str) -> Transaction:
        """
        Delete a record.

        Returns:
            The removed record

        Raises:
            NotFoundError: If no record has this id
        """
        index = self._index_of(transaction_id)
        return self._records.pop(index)

    def clear(self) -> int:
        """Remove every record. Returns how many were removed."""
        removed = len(self._records)
        self._records = []
        return removed

    def replace_all(self, records: Iterable[Transaction]) -> None:
        """
        Discard the current contents and adopt the given records verbatim.

        Raises:
            DuplicateIdError: If the new records repeat an id
        """
        incoming = list(records)
        self._check_unique(incoming, [])
        self._records = incoming
        self._issued_ids.update(record.id for record in incoming)

    def append_all(self, records: Iterable[Transaction]) -> None:
        """
        Append records after the current contents.

        Raises:
            DuplicateIdError: If any id is already taken or repeated
        """
        incoming = list(records)
        self._check_unique(incoming, self._records)
        self._records = self._records + incoming
        self._issued_ids.update(record.id for record in incoming)
