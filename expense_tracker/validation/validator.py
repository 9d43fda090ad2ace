"""
Transaction Validation

DESIGN DECISION: Validation is a pure function of the candidate values
and "today". Rules are checked in a fixed order and the first failure
wins, so the user always sees exactly one actionable message:

1. Date present and parseable
2. Date no more than one year ahead
3. Description length within bounds after trimming
4. Category present (and valid for the transaction type)
5. Amount a positive, finite number
6. Amount no larger than the configured maximum

IMPORTANT: Validation NEVER raises and NEVER touches the ledger.
It returns a ValidationResult for the caller to act on.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional, Union

from expense_tracker.config import LedgerSettings, get_settings
from expense_tracker.models.transaction import (
    TransactionFields,
    TransactionType,
    ValidationResult,
    categories_for,
)
from expense_tracker.queries.periods import add_years, as_date

CENTS = Decimal("0.01")


def parse_date(value: Any) -> Optional[date]:
    """
    Read a calendar date from a date, datetime or ISO string.

    Returns None when the value cannot be read as a date.
    """
    if isinstance(value, (date, datetime)):
        return as_date(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Read an amount from a Decimal, int, float or numeric string.

    Amounts are rounded half up to whole cents, so every stored amount
    survives the JSON number used in export documents.
    Returns None for anything else, including NaN and infinities.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float):
        value = str(value)
    if isinstance(value, str):
        value = value.strip()
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not amount.is_finite():
        return None
    if amount.as_tuple().exponent < -2:
        try:
            amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            return None
    return amount


class TransactionValidator:
    """
    Validates candidate field values for add and update commands.

    The category check against the type-specific set is on by default
    (settings.strict_categories) and can be relaxed to a presence check.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings()

    @property
    def max_amount(self) -> Decimal:
        return Decimal(str(self._settings.max_amount))

    def validate(
        self,
        transaction_type: Union[TransactionType, str],
        transaction_date: Any,
        description: Optional[str],
        category: Optional[str],
        amount: Any,
        notes: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run every rule in order and stop at the first failure.

        Args:
            transaction_type: income or expense (decides the category set)
            transaction_date: date, datetime or ISO string
            description: free text, trimmed before checking
            category: category name
            amount: Decimal, number or numeric string
            notes: optional free text
            today: reference day for the future-date rule (defaults to today)

        Returns:
            ValidationResult, Ok with normalised fields or Rejected with a reason
        """
        today = today or date.today()

        try:
            transaction_type = TransactionType(transaction_type)
        except ValueError:
            return ValidationResult.rejected(
                "type", "invalid_value", "Transaction type must be income or expense."
            )

        # Rule 1: date present and parseable
        if transaction_date is None or transaction_date == "":
            return ValidationResult.rejected("date", "missing", "Please select a date.")
        parsed_date = parse_date(transaction_date)
        if parsed_date is None:
            return ValidationResult.rejected("date", "invalid_format", "Please enter a valid date.")

        # Rule 2: not too far ahead
        years = self._settings.future_date_limit_years
        if parsed_date > add_years(today, years):
            unit = "year" if years == 1 else "years"
            return ValidationResult.rejected(
                "date",
                "future_date",
                f"Date cannot be more than {years} {unit} in the future.",
            )

        # Rule 3: description length after trimming
        text = description.strip() if isinstance(description, str) else ""
        minimum = self._settings.min_description_length
        maximum = self._settings.max_description_length
        if len(text) < minimum:
            return ValidationResult.rejected(
                "description",
                "too_short",
                f"Description must be at least {minimum} characters long.",
            )
        if len(text) > maximum:
            return ValidationResult.rejected(
                "description",
                "too_long",
                f"Description cannot exceed {maximum} characters.",
            )

        # Rule 4: category
        category_name = category.strip() if isinstance(category, str) else ""
        if not category_name:
            return ValidationResult.rejected("category", "missing", "Please select a category.")
        if (
            self._settings.strict_categories
            and category_name not in categories_for(transaction_type)
        ):
            return ValidationResult.rejected(
                "category",
                "invalid_value",
                f"Category '{category_name}' is not valid for "
                f"{transaction_type.value} transactions.",
            )

        # Rule 5: positive, finite amount
        parsed_amount = parse_amount(amount)
        if parsed_amount is None or parsed_amount <= 0:
            return ValidationResult.rejected(
                "amount",
                "invalid_value",
                "Please enter a valid amount greater than 0.",
            )

        # Rule 6: upper bound
        if parsed_amount > self.max_amount:
            return ValidationResult.rejected(
                "amount",
                "out_of_range",
                f"Amount cannot exceed ${self.max_amount:,.0f}.",
            )

        return ValidationResult.ok(TransactionFields(
            transaction_date=parsed_date,
            description=text,
            category=category_name,
            amount=parsed_amount,
            notes=(notes.strip() or None) if isinstance(notes, str) else None,
        ))

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a one-line summary of the validation result.

        This is what the presentation layer shows next to the form.
        """
        if result.is_valid:
            return "✅ All checks passed."
        return f"❌ {result.reason}"
