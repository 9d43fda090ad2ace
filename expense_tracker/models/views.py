"""
Derived View Models

Everything here is computed from the ledger and never stored:
statistics, category totals, monthly trend buckets, filter criteria,
pages of transactions, export documents and command results.

These are what the engine hands to presentation collaborators.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from expense_tracker.errors import LedgerError
from expense_tracker.models.transaction import (
    Transaction,
    TransactionType,
    utc_now,
)


# =============================================================================
# QUERY MODELS
# =============================================================================

class Period(str, Enum):
    """
    Calendar-aligned "since X" windows used for filtering.

    Every period has an inclusive lower bound computed from now and
    no upper bound.
    """
    NONE = "none"
    TODAY = "today"
    WEEK = "week"  # Weeks start on Sunday
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class QueryCriteria(BaseModel):
    """
    Active filter criteria for the transaction list.

    All criteria are optional and combine with AND semantics.
    Empty strings (an untouched filter control) mean "no filter".
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    search_text: Optional[str] = Field(
        default=None,
        description="Case-insensitive substring of description, category or notes"
    )
    type: Optional[TransactionType] = None
    category: Optional[str] = None
    period: Period = Period.NONE

    @field_validator('search_text', 'type', 'category', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('period', mode='before')
    @classmethod
    def blank_period_to_none(cls, v):
        if v is None or v == "" or v == "all":
            return Period.NONE
        return v

    @property
    def is_empty(self) -> bool:
        return (
            self.search_text is None
            and self.type is None
            and self.category is None
            and self.period == Period.NONE
        )


class Page(BaseModel):
    """
    One page of a filtered view.

    Pages are 1-indexed. A page past the end has no items but still
    reports the true total_pages.
    """

    items: list[Transaction] = Field(default_factory=list)
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total_items: int = Field(ge=0)
    total_pages: int = Field(ge=0)

    @property
    def start_item(self) -> int:
        """1-based position of the first item on this page."""
        return (self.page - 1) * self.page_size + 1

    @property
    def end_item(self) -> int:
        """1-based position of the last item on this page."""
        return min(self.page * self.page_size, self.total_items)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def summary(self) -> str:
        return f"Showing {self.start_item}-{self.end_item} of {self.total_items} transactions"

    def page_window(self, radius: int = 2) -> list[Optional[int]]:
        """
        Page numbers for a pagination control.

        Shows the current page +/- radius, always the first and last page,
        and None where a gap (ellipsis) belongs. Empty when there is
        at most one page.
        """
        if self.total_pages <= 1:
            return []

        start = max(1, self.page - radius)
        end = min(self.total_pages, self.page + radius)

        window: list[Optional[int]] = []
        if start > 1:
            window.append(1)
            if start > 2:
                window.append(None)
        window.extend(range(start, end + 1))
        if end < self.total_pages:
            if end < self.total_pages - 1:
                window.append(None)
            window.append(self.total_pages)
        return window


# =============================================================================
# ANALYTICS MODELS
# =============================================================================

class Stats(BaseModel):
    """
    Whole-ledger totals plus month-over-month deltas.

    Totals are computed over every transaction, not a filtered period.
    Change percentages compare the current calendar month with the
    previous one and are 0 when the previous month is 0.
    """

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")
    savings_rate: int = Field(
        default=0,
        description="Rounded percentage of income kept; 0 without income"
    )
    income_change_percent: float = 0.0
    expense_change_percent: float = 0.0
    balance_change_percent: float = 0.0


class MonthlySummary(BaseModel):
    """Income and expense totals for one calendar month."""

    year: int
    month: int = Field(ge=1, le=12)
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")

    @property
    def savings(self) -> Decimal:
        return self.income - self.expenses


class CategoryTotal(BaseModel):
    """Summed expense amount for one category."""

    name: str
    amount: Decimal


class MonthlyBucket(MonthlySummary):
    """One point of the monthly trend series."""

    @property
    def net(self) -> Decimal:
        return self.savings

    @property
    def label(self) -> str:
        """Short chart label, e.g. 'Oct 26'."""
        return date(self.year, self.month, 1).strftime("%b %y")

    @property
    def long_label(self) -> str:
        """Report label, e.g. 'October 2026'."""
        return date(self.year, self.month, 1).strftime("%B %Y")


class TrendSeries(BaseModel):
    """Fixed-length series of monthly buckets, oldest first."""

    buckets: list[MonthlyBucket] = Field(default_factory=list)

    @property
    def labels(self) -> list[str]:
        return [bucket.label for bucket in self.buckets]

    @property
    def income(self) -> list[Decimal]:
        return [bucket.income for bucket in self.buckets]

    @property
    def expenses(self) -> list[Decimal]:
        return [bucket.expenses for bucket in self.buckets]

    def __len__(self) -> int:
        return len(self.buckets)


# =============================================================================
# IMPORT / EXPORT MODELS
# =============================================================================

class ImportMode(str, Enum):
    """How an imported document is reconciled with the ledger."""
    MERGE = "merge"      # Fresh ids, appended after existing records
    REPLACE = "replace"  # Ledger discarded, imported records adopted verbatim


class ExportDocument(BaseModel):
    """
    Versioned snapshot of the ledger.

    Serialized shape:
        {"transactions": [...], "exportDate": "<ISO-8601>", "version": "1.0"}
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    transactions: list[Transaction] = Field(default_factory=list)
    export_date: datetime = Field(default_factory=utc_now)
    version: str = "1.0"

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


# =============================================================================
# ENGINE RESULT MODELS
# =============================================================================

class ErrorKind(str, Enum):
    """Discriminator for failed command results."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    FORMAT = "format"
    UNEXPECTED = "unexpected"


class CommandResult(BaseModel):
    """
    Outcome of an engine command.

    Commands never raise. A failed command carries the error kind and a
    human-readable message, and the ledger is untouched.
    """

    executed_at: datetime = Field(default_factory=utc_now)
    success: bool
    error_kind: Optional[ErrorKind] = None
    message: str = ""

    # Payload (depends on the command)
    transaction_id: Optional[str] = None
    transaction: Optional[Transaction] = None
    count: int = Field(default=0, ge=0)
    content: Optional[str] = Field(
        default=None,
        description="Text produced by the command (export JSON, report)"
    )
    filename: Optional[str] = Field(
        default=None,
        description="Suggested file name for the content"
    )
    page: Optional[Page] = None

    @classmethod
    def ok(cls, message: str, **payload) -> "CommandResult":
        return cls(success=True, message=message, **payload)

    @classmethod
    def failed(cls, error: LedgerError, **payload) -> "CommandResult":
        return cls(
            success=False,
            error_kind=ErrorKind(error.kind),
            message=error.message,
            **payload,
        )


class LedgerSnapshot(BaseModel):
    """
    Every derived view at one point in time.

    Pushed to subscribers after each successful command.
    """

    generated_at: datetime = Field(default_factory=utc_now)
    stats: Stats
    monthly_summary: MonthlySummary
    category_breakdown: list[CategoryTotal] = Field(default_factory=list)
    expense_distribution: list[CategoryTotal] = Field(default_factory=list)
    trend: TrendSeries
    criteria: QueryCriteria
    page: Page
    category_options: list[str] = Field(default_factory=list)
    transaction_count: int = Field(default=0, ge=0)
