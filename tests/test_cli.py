"""End-to-end CLI tests driven through click's CliRunner."""

from __future__ import annotations

import csv

import pytest
from click.testing import CliRunner

from clockedout.cli import cli


@pytest.fixture
def runner(clockedout_env) -> CliRunner:
    return CliRunner()


@pytest.fixture
def export_file(tmp_path, december_csv):
    path = tmp_path / "december.csv"
    path.write_text(december_csv, encoding="utf-8")
    return path


def _import(runner, path, *extra):
    return runner.invoke(cli, ["import", str(path), "--yes", *extra])


def test_import_then_list_and_report(runner, export_file):
    result = _import(runner, export_file)
    assert result.exit_code == 0, result.output
    assert "Month:          12/2025" in result.output
    assert "Saved December 2025: salary 425.00" in result.output

    months = runner.invoke(cli, ["months"])
    assert months.exit_code == 0
    assert "12/2025" in months.output
    assert "425.00" in months.output

    report = runner.invoke(cli, ["report", "12/2025"])
    assert report.exit_code == 0
    assert "November 30 - 6" in report.output
    assert "December 7 - 13" in report.output
    assert "Salary: 425.00" in report.output


def test_import_with_rates_and_accumulate(runner, export_file):
    assert _import(runner, export_file, "--weekday-rate", "50", "--weekend-rate", "60").exit_code == 0

    result = _import(runner, export_file, "--action", "accumulate", "--rate-source", "stored", "--weekday-rate", "10")
    assert result.exit_code == 0, result.output
    assert "already imported" in result.output
    # 5h weekday at 50 + 4h weekend at 60
    assert "salary 490.00" in result.output


def test_import_prompt_can_cancel(runner, export_file):
    result = runner.invoke(cli, ["import", str(export_file)], input="n\n")
    assert result.exit_code == 0
    assert "Import cancelled." in result.output
    assert "No months imported yet." in runner.invoke(cli, ["months"]).output


def test_import_invalid_rate_is_reported(runner, export_file):
    result = _import(runner, export_file, "--weekday-rate", "0")
    assert result.exit_code == 1
    assert "Weekday Rate cannot be zero" in result.output


def test_import_missing_columns(runner, tmp_path):
    bad = tmp_path / "bad.csv"
    bad.write_text('Start Text,Duration\n"12/01/2025, 9:00:00 AM UTC",1\n', encoding="utf-8")
    result = _import(runner, bad)
    assert result.exit_code == 1
    assert "Missing required columns: Time Tracked" in result.output


def test_export_and_delete(runner, export_file, tmp_path):
    _import(runner, export_file)
    output = tmp_path / "out" / "report.csv"

    result = runner.invoke(cli, ["export", "12/2025", str(output)])
    assert result.exit_code == 0, result.output
    with output.open(newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))
    assert rows[0] == ["Week Range", "Weekday Hours", "Weekend Hours", "Total Hours"]
    assert rows[-1] == ["Salary", "425.00"]

    kept = runner.invoke(cli, ["delete", "12/2025"], input="n\n")
    assert "Nothing deleted." in kept.output

    deleted = runner.invoke(cli, ["delete", "12/2025", "--yes"])
    assert deleted.exit_code == 0
    assert "Deleted 12/2025." in deleted.output
    assert "No data stored for 12/2025." in runner.invoke(cli, ["delete", "12/2025", "--yes"]).output


def test_report_unknown_month(runner):
    result = runner.invoke(cli, ["report", "01/2030"])
    assert result.exit_code == 1
    assert "Record not found: 01/2030" in result.output


def test_month_argument_is_validated(runner):
    result = runner.invoke(cli, ["report", "2025-12"])
    assert result.exit_code == 2
    assert "MM/YYYY" in result.output


def test_rates_show_and_update(runner, export_file):
    shown = runner.invoke(cli, ["rates"])
    assert "Weekday rate: 90" in shown.output
    assert "Weekend rate: 100" in shown.output

    _import(runner, export_file)
    updated = runner.invoke(cli, ["rates", "--weekday", "45.5"])
    assert updated.exit_code == 0, updated.output
    assert "Default rates set to 45.5 / 100" in updated.output
    assert "Recalculated 1 month(s)." in updated.output
    assert "Weekday rate: 45.5" in runner.invoke(cli, ["rates"]).output

    rejected = runner.invoke(cli, ["rates", "--weekend", "20000"])
    assert rejected.exit_code == 1


def test_backup(runner, tmp_path):
    result = runner.invoke(cli, ["backup", "--output-dir", str(tmp_path / "snapshots")])
    assert result.exit_code == 0, result.output
    assert "Backup written:" in result.output
    assert list((tmp_path / "snapshots").glob("clockedout_backup_*.db"))
