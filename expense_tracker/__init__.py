"""
Expense Tracker - Ledger & Analytics Engine

An in-memory personal finance ledger that records income and expense
transactions and derives statistics, category breakdowns, monthly
trends and paginated views from them.

DESIGN PRINCIPLES:
1. The ledger is the single source of truth
2. Every view is derived, never stored
3. Fail closed: a failed command never touches the ledger
4. Every command is auditable
5. Presentation and storage live outside the engine
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
