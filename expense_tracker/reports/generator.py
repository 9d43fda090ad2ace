"""
Text Report Generator

Pure formatting of figures the Aggregator already computed.
Nothing here sums, ranks or filters transactions; a bucket's net is
the only arithmetic done while formatting.
"""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from typing import Optional

from expense_tracker.models.views import CategoryTotal, MonthlyBucket, Stats


def _money(amount: Decimal) -> str:
    return f"{amount:.2f}"


class ReportGenerator:
    """
    Lays out a plain-text summary document.

    Layout:
        EXPENSE TRACKER REPORT
        Generated on: 10/19/2026
        ==================================================

        SUMMARY
        ...
        TOP EXPENSE CATEGORIES
        ...
        MONTHLY BREAKDOWN
        ...
    """

    title = "EXPENSE TRACKER REPORT"

    def generate_report(
        self,
        stats: Stats,
        top_categories: Sequence[CategoryTotal],
        monthly_breakdown: Sequence[MonthlyBucket],
        generated_on: Optional[date] = None,
    ) -> str:
        """
        Format the report.

        Args:
            stats: Whole-ledger statistics
            top_categories: Ranked expense categories (at most 10 are expected)
            monthly_breakdown: Monthly buckets, oldest first
            generated_on: Date printed in the header (defaults to today)
        """
        generated_on = generated_on or date.today()

        lines = [
            self.title,
            f"Generated on: {generated_on.month}/{generated_on.day}/{generated_on.year}",
            "=" * 50,
            "",
            "SUMMARY",
            "=" * 20,
            f"Total Income: {_money(stats.total_income)}",
            f"Total Expenses: {_money(stats.total_expenses)}",
            f"Net Balance: {_money(stats.net_balance)}",
            f"Savings Rate: {stats.savings_rate}%",
            "",
            "TOP EXPENSE CATEGORIES",
            "=" * 30,
        ]

        for position, category in enumerate(top_categories, start=1):
            lines.append(f"{position}. {category.name}: {_money(category.amount)}")

        lines.extend([
            "",
            "MONTHLY BREAKDOWN",
            "=" * 25,
        ])

        for bucket in monthly_breakdown:
            lines.append(
                f"{bucket.long_label}: Income {_money(bucket.income)}, "
                f"Expenses {_money(bucket.expenses)}, "
                f"Net {_money(bucket.net)}"
            )

        return "\n".join(lines) + "\n"

    @staticmethod
    def report_filename(day: Optional[date] = None) -> str:
        """Suggested download name, e.g. expense-report-2026-10-19.txt."""
        return f"expense-report-{(day or date.today()).isoformat()}.txt"
