"""CSV export helpers for ClockedOut."""

from __future__ import annotations

import csv
from pathlib import Path

from ..logging_config import get_logger
from ..models.report import MonthlyReport
from .reports import format_decimal_hours

logger = get_logger(__name__)

EXPORT_HEADERS = ["Week Range", "Weekday Hours", "Weekend Hours", "Total Hours"]


def export_report_csv(report: MonthlyReport, output_path: Path) -> Path:
    """Write a monthly report to CSV at `output_path`.

    One row per week, a blank separator row, then the monthly totals and salary.
    Returns the path written.
    """

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    totals = report.totals
    assert totals is not None

    # Use newline='' for csv on Windows
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh, quoting=csv.QUOTE_MINIMAL)
        writer.writerow(EXPORT_HEADERS)
        for week in report.weekly_reports:
            writer.writerow(
                [
                    week.week_range_label,
                    format_decimal_hours(week.weekday_hours),
                    format_decimal_hours(week.weekend_hours),
                    format_decimal_hours(week.total_hours),
                ]
            )
        writer.writerow([])
        writer.writerow(
            [
                "Totals",
                format_decimal_hours(totals.weekday_hours),
                format_decimal_hours(totals.weekend_hours),
                format_decimal_hours(totals.total_hours),
            ]
        )
        writer.writerow(["Salary", format_decimal_hours(totals.salary)])

    logger.info(
        "Exported report for %s",
        report.summary.month,
        extra={"path": str(output_path), "weeks": len(report.weekly_reports)},
    )
    return output_path
