"""Day-history export workflow."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from busybee.domain.metrics import DayStat, SummaryMetrics
from busybee.runtime import get_logger

logger = get_logger(__name__)

EXPORT_COLUMNS = ["date", "allowance", "spent", "leftover"]


@dataclass(frozen=True)
class DayHistoryExport:
    """Result of writing the day history."""

    path: Path
    rows: int


def day_stats_frame(stats: list[DayStat]):  # -> pandas.DataFrame
    """Tabulate day stats, one row per day, amounts as floats rounded to cents."""
    import pandas as pd

    frame = pd.DataFrame(
        [
            {
                "date": stat.day.isoformat(),
                "allowance": float(stat.allowance),
                "spent": float(stat.total_spent),
                "leftover": float(stat.leftover),
            }
            for stat in stats
        ],
        columns=EXPORT_COLUMNS,
    )
    return frame.round({"allowance": 2, "spent": 2, "leftover": 2})


def export_day_history(metrics: SummaryMetrics, path: Path) -> DayHistoryExport:
    """Write the day-by-day history to a CSV file."""
    frame = day_stats_frame(metrics.day_stats)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(path, index=False)
    logger.info("Exported %d days of history to %s", len(frame), path)
    return DayHistoryExport(path=path, rows=len(frame))
