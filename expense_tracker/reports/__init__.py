"""Report generation package."""

from expense_tracker.reports.generator import ReportGenerator

__all__ = ["ReportGenerator"]
