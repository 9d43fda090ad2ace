"""Ledger analytics package."""

from expense_tracker.analytics.aggregator import Aggregator, change_percent, round_half_up

__all__ = ["Aggregator", "change_percent", "round_half_up"]
