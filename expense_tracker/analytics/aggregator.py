"""
Ledger Analytics

Computes the numbers behind every dashboard surface:
- Whole-ledger totals, net balance and savings rate
- Month-over-month changes (current vs previous calendar month)
- Current-month quick stats
- Expense totals per category, ranked
- A fixed-length monthly income/expense trend

DESIGN DECISION: Money is summed as Decimal so totals are exact.
Only the change percentages are floats.
"""

from collections.abc import Iterable
from datetime import date, datetime
from decimal import ROUND_FLOOR, Decimal
from typing import Optional, Union

from expense_tracker.models.transaction import Transaction, TransactionType
from expense_tracker.models.views import (
    CategoryTotal,
    MonthlyBucket,
    MonthlySummary,
    Period,
    Stats,
    TrendSeries,
)
from expense_tracker.queries.periods import (
    as_date,
    in_month,
    period_start,
    previous_month,
    shift_month,
)

ZERO = Decimal("0")


def _sum(transactions: Iterable[Transaction], transaction_type: TransactionType) -> Decimal:
    return sum(
        (t.amount for t in transactions if t.type == transaction_type),
        ZERO,
    )


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, halves towards +infinity."""
    return int((value + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def change_percent(current: Decimal, previous: Decimal, absolute: bool = False) -> float:
    """
    Percentage change from previous to current.

    Returns 0 when previous is 0. With absolute=True the denominator is
    abs(previous), so a move from -100 to -50 reads as +50%.
    """
    if previous == 0:
        return 0.0
    denominator = abs(previous) if absolute else previous
    return float((current - previous) / denominator * 100)


class Aggregator:
    """
    Derives statistics from a set of transactions.

    Every method is a pure function of its inputs and "now".
    """

    def monthly_summary(
        self,
        transactions: Iterable[Transaction],
        year: int,
        month: int,
    ) -> MonthlySummary:
        """Income and expense totals for one calendar month."""
        in_period = [t for t in transactions if in_month(t.transaction_date, year, month)]
        return MonthlySummary(
            year=year,
            month=month,
            income=_sum(in_period, TransactionType.INCOME),
            expenses=_sum(in_period, TransactionType.EXPENSE),
        )

    def current_month_summary(
        self,
        transactions: Iterable[Transaction],
        now: Optional[Union[date, datetime]] = None,
    ) -> MonthlySummary:
        """Quick stats for the calendar month containing now."""
        today = as_date(now or datetime.now())
        return self.monthly_summary(transactions, today.year, today.month)

    def compute_stats(
        self,
        transactions: Iterable[Transaction],
        now: Optional[Union[date, datetime]] = None,
    ) -> Stats:
        """
        Whole-ledger totals plus month-over-month changes.

        Totals cover every transaction. Changes compare the current calendar
        month with the previous one (January compares with December of the
        prior year).
        """
        transactions = list(transactions)
        today = as_date(now or datetime.now())

        total_income = _sum(transactions, TransactionType.INCOME)
        total_expenses = _sum(transactions, TransactionType.EXPENSE)
        net_balance = total_income - total_expenses

        savings_rate = 0
        if total_income > 0:
            savings_rate = round_half_up(net_balance / total_income * 100)

        current = self.monthly_summary(transactions, today.year, today.month)
        previous = self.monthly_summary(transactions, *previous_month(today.year, today.month))

        return Stats(
            total_income=total_income,
            total_expenses=total_expenses,
            net_balance=net_balance,
            savings_rate=savings_rate,
            income_change_percent=change_percent(current.income, previous.income),
            expense_change_percent=change_percent(current.expenses, previous.expenses),
            balance_change_percent=change_percent(
                current.savings, previous.savings, absolute=True
            ),
        )

    def category_totals(self, transactions: Iterable[Transaction]) -> list[CategoryTotal]:
        """
        Expense totals per category, largest first.

        Ties keep the order in which categories were first encountered.
        """
        totals: dict[str, Decimal] = {}
        for t in transactions:
            if t.type == TransactionType.EXPENSE:
                totals[t.category] = totals.get(t.category, ZERO) + t.amount

        ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
        return [CategoryTotal(name=name, amount=amount) for name, amount in ranked]

    def category_breakdown(
        self,
        transactions: Iterable[Transaction],
        limit: int = 5,
    ) -> list[CategoryTotal]:
        """Top `limit` expense categories by summed amount."""
        return self.category_totals(transactions)[:limit]

    def expense_distribution(
        self,
        transactions: Iterable[Transaction],
        period: Period = Period.NONE,
        now: Optional[Union[date, datetime]] = None,
    ) -> list[CategoryTotal]:
        """
        Every expense category for a chosen period (chart data).

        Period.NONE covers the whole ledger.
        """
        start = period_start(period, now or datetime.now())
        if start is not None:
            transactions = [t for t in transactions if t.transaction_date >= start]
        return self.category_totals(transactions)

    def monthly_trend(
        self,
        transactions: Iterable[Transaction],
        now: Optional[Union[date, datetime]] = None,
        months: int = 12,
    ) -> TrendSeries:
        """
        Income and expense totals for the last `months` calendar months.

        The series always has exactly `months` buckets, oldest first, ending
        with the current month. Months without transactions report zeros.
        """
        today = as_date(now or datetime.now())

        buckets: dict[tuple[int, int], MonthlyBucket] = {}
        for offset in range(months - 1, -1, -1):
            year, month = shift_month(today.year, today.month, -offset)
            buckets[(year, month)] = MonthlyBucket(year=year, month=month)

        for t in transactions:
            bucket = buckets.get((t.transaction_date.year, t.transaction_date.month))
            if bucket is None:
                continue
            if t.type == TransactionType.INCOME:
                bucket.income += t.amount
            else:
                bucket.expenses += t.amount

        return TrendSeries(buckets=list(buckets.values()))
