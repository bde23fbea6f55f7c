"""Tests for the day-history CSV export."""

from __future__ import annotations

import datetime as dt
from pathlib import Path

import pandas as pd

from busybee.application.export import EXPORT_COLUMNS, day_stats_frame, export_day_history
from busybee.domain.allowance import AllowanceHistory
from busybee.domain.ledger import ExpenseCategory, ExpenseLedger
from busybee.domain.metrics import SummaryMetrics


def _metrics() -> SummaryMetrics:
    history = AllowanceHistory()
    history.record("12.50", dt.date(2024, 3, 1))
    ledger = ExpenseLedger()
    ledger.add("Cafe", "3.333", ExpenseCategory.FOOD, date=dt.datetime(2024, 3, 2, 8))
    ledger.add("Dinner", "40", ExpenseCategory.FOOD, date=dt.datetime(2024, 3, 3, 19))
    return SummaryMetrics.compute(history, ledger, dt.date(2024, 3, 3))


def test_frame_has_one_row_per_day() -> None:
    frame = day_stats_frame(_metrics().day_stats)

    assert list(frame.columns) == EXPORT_COLUMNS
    assert frame["date"].tolist() == ["2024-03-01", "2024-03-02", "2024-03-03"]
    assert frame["spent"].tolist() == [0.0, 3.33, 40.0]
    assert frame["leftover"].tolist() == [12.5, 9.17, 0.0]


def test_empty_series_gives_header_only() -> None:
    frame = day_stats_frame([])

    assert frame.empty
    assert list(frame.columns) == EXPORT_COLUMNS


def test_export_writes_csv(tmp_path: Path) -> None:
    path = tmp_path / "out" / "history.csv"

    result = export_day_history(_metrics(), path)

    assert result.path == path
    assert result.rows == 3
    loaded = pd.read_csv(path)
    assert list(loaded.columns) == EXPORT_COLUMNS
    assert loaded["allowance"].tolist() == [12.5, 12.5, 12.5]
