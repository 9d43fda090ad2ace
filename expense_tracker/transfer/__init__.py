"""Import/export package."""

from expense_tracker.transfer.coordinator import ImportExportCoordinator

__all__ = ["ImportExportCoordinator"]
