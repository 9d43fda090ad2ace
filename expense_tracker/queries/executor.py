"""
Query Execution Engine

DESIGN DECISION: Queries are DETERMINISTIC and read-only.
They derive filtered, period-bounded, sorted and paginated views from
the ledger and never mutate it.

Display order (newest date first) exists only in views; the store
keeps insertion order.
"""

import math
from collections.abc import Iterable
from datetime import date, datetime
from typing import Optional, Union

from expense_tracker.models.transaction import Transaction
from expense_tracker.models.views import Page, Period, QueryCriteria
from expense_tracker.queries.periods import period_start


class QueryExecutor:
    """
    Builds filtered views over a sequence of transactions.

    GUARANTEES:
    - Only returns records that exist in the input
    - Criteria combine with AND semantics
    - Output is sorted by date, newest first; equal dates keep store order
    """

    def filtered_view(
        self,
        transactions: Iterable[Transaction],
        criteria: Optional[QueryCriteria] = None,
        now: Optional[Union[date, datetime]] = None,
    ) -> list[Transaction]:
        """
        Apply every active criterion, then sort newest first.

        Args:
            transactions: Records in store order
            criteria: Active filters (None means no filters)
            now: Reference moment for period bounds (defaults to now)
        """
        criteria = criteria or QueryCriteria()
        filtered = list(transactions)

        if criteria.search_text:
            filtered = [t for t in filtered if self._matches_search(t, criteria.search_text)]

        if criteria.type is not None:
            filtered = [t for t in filtered if t.type == criteria.type]

        if criteria.category:
            filtered = [t for t in filtered if t.category == criteria.category]

        if criteria.period != Period.NONE:
            filtered = self.filter_by_period(filtered, criteria.period, now)

        return self.sort_newest_first(filtered)

    def filter_by_period(
        self,
        transactions: Iterable[Transaction],
        period: Period,
        now: Optional[Union[date, datetime]] = None,
    ) -> list[Transaction]:
        """Keep records dated on or after the start of the period."""
        start = period_start(period, now or datetime.now())
        if start is None:
            return list(transactions)
        return [t for t in transactions if t.transaction_date >= start]

    def sort_newest_first(self, transactions: Iterable[Transaction]) -> list[Transaction]:
        # sorted() is stable with reverse=True too: equal dates keep input order
        return sorted(transactions, key=lambda t: t.transaction_date, reverse=True)

    def paginate(
        self,
        view: list[Transaction],
        page: int,
        page_size: int,
    ) -> Page:
        """
        Slice one page out of a view.

        Pages below 1 are clamped to 1. Pages past the end are not clamped:
        they yield no items while total_pages still reports the real count.
        """
        if page_size < 1:
            raise ValueError("page_size must be at least 1")

        page = max(1, page)
        total_items = len(view)
        total_pages = math.ceil(total_items / page_size)
        start = (page - 1) * page_size

        return Page(
            items=view[start:start + page_size],
            page=page,
            page_size=page_size,
            total_items=total_items,
            total_pages=total_pages,
        )

    def category_options(self, transactions: Iterable[Transaction]) -> list[str]:
        """Distinct categories in first-seen order, for filter controls."""
        return list(dict.fromkeys(t.category for t in transactions))

    def _matches_search(self, transaction: Transaction, search_text: str) -> bool:
        needle = search_text.lower()
        return (
            needle in transaction.description.lower()
            or needle in transaction.category.lower()
            or (transaction.notes is not None and needle in transaction.notes.lower())
        )
