"""
Core Data Models for the Expense Tracker

These models define the strict schemas for every record kept in the ledger.
They are designed to:
1. Enforce type safety at runtime
2. Keep identity fields (id, type, created_at) apart from editable fields
3. Serialize to the portable import/export document format
4. Carry validation outcomes as values instead of exceptions

DESIGN DECISION: The Transaction model only checks structure (types,
parseable dates, finite amounts). Business bounds such as the amount limit
live in the validator, because a replace-import adopts records verbatim.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Timezone-aware current time used for record timestamps."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of money flow.

    CRITICAL: The type is fixed when a transaction is created.
    Updates never change it.
    """
    INCOME = "income"
    EXPENSE = "expense"


class IncomeCategory(str, Enum):
    """Categories offered for income transactions."""
    SALARY = "Salary"
    FREELANCE = "Freelance"
    INVESTMENT = "Investment"
    BUSINESS = "Business"
    RENTAL = "Rental"
    BONUS = "Bonus"
    REFUND = "Refund"
    OTHER = "Other"


class ExpenseCategory(str, Enum):
    """Categories offered for expense transactions."""
    FOOD = "Food"
    TRANSPORTATION = "Transportation"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    HEALTHCARE = "Healthcare"
    BILLS = "Bills"
    EDUCATION = "Education"
    TRAVEL = "Travel"
    INSURANCE = "Insurance"
    MAINTENANCE = "Maintenance"
    SUBSCRIPTION = "Subscription"
    OTHER = "Other"


def categories_for(transaction_type: TransactionType) -> list[str]:
    """Category names valid for the given transaction type, in display order."""
    if TransactionType(transaction_type) == TransactionType.INCOME:
        return [c.value for c in IncomeCategory]
    return [c.value for c in ExpenseCategory]


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class TransactionFields(BaseModel):
    """
    The editable part of a transaction.

    This is what an add or update command carries once it has
    passed validation.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    transaction_date: date = Field(
        ...,
        description="Calendar date of the transaction"
    )
    description: str = Field(
        ...,
        description="Short description of the transaction"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Category name (depends on the transaction type)"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount"
    )
    notes: Optional[str] = Field(
        default=None,
        description="Optional free-text notes"
    )

    @field_validator('notes')
    @classmethod
    def empty_notes_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class Transaction(BaseModel):
    """
    A single ledger record.

    Identity fields (id, type, created_at) never change after creation.
    Field values change only through a validated update, which also
    stamps updated_at.

    Wire names are camelCase (createdAt, updatedAt) to match the
    export document. Numeric ids found in older documents are read
    as strings.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    # Identity
    id: str = Field(
        ...,
        min_length=1,
        description="Unique transaction ID"
    )
    type: TransactionType = Field(
        ...,
        description="Income or expense (fixed at creation)"
    )

    # Editable fields
    transaction_date: date = Field(
        ...,
        alias="date",
        description="Calendar date of the transaction"
    )
    description: str = Field(
        ...,
        description="Short description"
    )
    category: str = Field(
        ...,
        description="Category name"
    )
    amount: Decimal = Field(
        ...,
        description="Transaction amount"
    )
    notes: Optional[str] = Field(
        default=None,
        description="Optional notes"
    )

    # Timestamps
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the transaction was recorded"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="Creation timestamp (immutable)"
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        description="Last update timestamp, set only by updates"
    )

    @field_validator('notes')
    @classmethod
    def empty_notes_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, v: Decimal) -> float:
        """Amounts travel as JSON numbers."""
        return float(v)

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign of its effect on the balance."""
        return self.amount if self.is_income else -self.amount

    def editable_fields(self) -> TransactionFields:
        """Editable fields of this record, e.g. to pre-fill an edit form."""
        return TransactionFields(
            transaction_date=self.transaction_date,
            description=self.description,
            category=self.category,
            amount=self.amount,
            notes=self.notes,
        )

    def to_document_dict(self) -> dict:
        """Convert to the JSON-compatible dict used in export documents."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """The single rule violation that rejected a candidate transaction."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'out_of_range', 'future_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


class ValidationResult(BaseModel):
    """
    Outcome of validating candidate field values.

    Either Ok (is_valid, with normalised fields) or Rejected
    (not is_valid, with the first failing rule as issue).
    """

    validated_at: datetime = Field(
        default_factory=utc_now
    )
    is_valid: bool = Field(
        ...,
        description="Did every rule pass?"
    )
    issue: Optional[ValidationIssue] = Field(
        default=None,
        description="First rule that failed"
    )
    normalized: Optional[TransactionFields] = Field(
        default=None,
        description="Normalised field values when valid"
    )

    @property
    def reason(self) -> Optional[str]:
        """Human-readable rejection reason, None when valid."""
        return self.issue.message if self.issue else None

    @classmethod
    def ok(cls, fields: TransactionFields) -> "ValidationResult":
        return cls(is_valid=True, normalized=fields)

    @classmethod
    def rejected(cls, field: str, issue_type: str, message: str) -> "ValidationResult":
        return cls(
            is_valid=False,
            issue=ValidationIssue(field=field, issue_type=issue_type, message=message),
        )
