"""Application workflows."""

from busybee.application.budget import BudgetService, MutationResult
from busybee.application.export import DayHistoryExport, day_stats_frame, export_day_history

__all__ = [
    "BudgetService",
    "MutationResult",
    "DayHistoryExport",
    "day_stats_frame",
    "export_day_history",
]
