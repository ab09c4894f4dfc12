"""Command-line interface for ClockedOut."""

from __future__ import annotations

import asyncio
import functools
from pathlib import Path
from typing import Any, Callable, Optional

import click

from .config import BaseConfig
from .context import AppContext, create_app_context
from .errors import ClockedOutError, WeeklySummaryWriteFailed
from .logging_config import get_logger, setup_logging
from .models.rates import HourlyRates
from .services.admin_tasks import backup_database
from .services.export_csv import export_report_csv
from .services.import_workflow import ImportAction, ImportPreview, ImportWorkflow, RateSource
from .services.reports import format_clean, format_currency, format_decimal_hours
from .services.salary import is_valid_month_key

logger = get_logger(__name__)

pass_app = click.make_pass_decorator(AppContext)


def _handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Render domain errors as click errors instead of tracebacks."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ClockedOutError as exc:
            message = str(exc)
            if exc.recovery_hint:
                message = f"{message}\n{exc.recovery_hint}"
            raise click.ClickException(message) from exc

    return wrapper


def _month_argument(_ctx: click.Context, _param: click.Parameter, value: str) -> str:
    if not is_valid_month_key(value):
        raise click.BadParameter("expected MM/YYYY, e.g. 12/2025")
    return value


def _echo_preview(preview: ImportPreview) -> None:
    click.echo(f"Month:          {preview.month_key}{' (already imported)' if preview.existing_month else ''}")
    click.echo(f"Entries:        {preview.entry_count}")
    if preview.skipped_rows:
        click.echo(f"Skipped rows:   {preview.skipped_rows}")
    click.echo(f"Weekday hours:  {format_decimal_hours(preview.weekday_hours)} @ {format_clean(preview.rates.weekday)}")
    click.echo(f"Weekend hours:  {format_decimal_hours(preview.weekend_hours)} @ {format_clean(preview.rates.weekend)}")
    click.echo(f"Salary:         {format_currency(preview.salary)}")


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Turn time-tracking exports into monthly hours and salary."""

    config = BaseConfig()
    setup_logging(config)
    app = create_app_context(config)
    ctx.obj = app
    ctx.call_on_close(app.close)


@cli.command("import")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--weekday-rate", type=float, default=None, help="Hourly rate for weekday work")
@click.option("--weekend-rate", type=float, default=None, help="Hourly rate for weekend work")
@click.option(
    "--action",
    type=click.Choice([action.value for action in ImportAction]),
    default=ImportAction.REPLACE.value,
    show_default=True,
    help="What to do when the month is already stored",
)
@click.option(
    "--rate-source",
    type=click.Choice([source.value for source in RateSource]),
    default=RateSource.CALLER.value,
    show_default=True,
    help="Rates kept when accumulating into a stored month",
)
@click.option("--yes", is_flag=True, default=False, help="Skip the confirmation prompt")
@pass_app
@_handle_errors
def import_command(
    app: AppContext,
    csv_file: Path,
    weekday_rate: Optional[float],
    weekend_rate: Optional[float],
    action: str,
    rate_source: str,
    yes: bool,
) -> None:
    """Import a CSV export and store the month it covers."""

    asyncio.run(
        _run_import(
            app.workflow,
            csv_file,
            weekday_rate=weekday_rate,
            weekend_rate=weekend_rate,
            action=ImportAction(action),
            rate_source=RateSource(rate_source),
            assume_yes=yes,
        )
    )


async def _run_import(
    workflow: ImportWorkflow,
    csv_file: Path,
    *,
    weekday_rate: Optional[float],
    weekend_rate: Optional[float],
    action: ImportAction,
    rate_source: RateSource,
    assume_yes: bool,
) -> None:
    preview = await workflow.load(csv_file)
    if weekday_rate is not None or weekend_rate is not None:
        preview = workflow.set_rates(
            weekday_rate if weekday_rate is not None else preview.rates.weekday,
            weekend_rate if weekend_rate is not None else preview.rates.weekend,
        )
    _echo_preview(preview)

    prompt = f"{action.value.capitalize()} {preview.month_key}?" if preview.existing_month else "Save this month?"
    if not assume_yes and not click.confirm(prompt, default=True):
        workflow.cancel()
        click.echo("Import cancelled.")
        return

    try:
        summary = await workflow.commit(action, rate_source)
    except WeeklySummaryWriteFailed as exc:
        logger.warning("Retrying weekly summaries for %s", exc.month_key)
        summary = await workflow.retry_weekly()
    click.echo(f"Saved {summary.formatted_month}: salary {format_currency(summary.salary)}")


@cli.command("months")
@pass_app
@_handle_errors
def months_command(app: AppContext) -> None:
    """List stored months, newest first."""

    summaries = app.reports.list_months()
    if not summaries:
        click.echo("No months imported yet.")
        return
    for summary in summaries:
        click.echo(
            f"{summary.month}  {summary.formatted_month:<16} "
            f"{format_decimal_hours(summary.total_hours):>8} h  {format_currency(summary.salary):>12}"
        )


@cli.command("report")
@click.argument("month", callback=_month_argument)
@pass_app
@_handle_errors
def report_command(app: AppContext, month: str) -> None:
    """Show the weekly breakdown of MONTH (MM/YYYY)."""

    report = app.reports.monthly_report(month)
    totals = report.totals
    assert totals is not None
    click.echo(report.summary.formatted_month)
    for week in report.weekly_reports:
        click.echo(
            f"  {week.display_label:<20} weekday {format_decimal_hours(week.weekday_hours):>7}"
            f"  weekend {format_decimal_hours(week.weekend_hours):>7}"
            f"  total {format_decimal_hours(week.total_hours):>7}"
        )
    click.echo(
        f"Totals: weekday {format_decimal_hours(totals.weekday_hours)}, "
        f"weekend {format_decimal_hours(totals.weekend_hours)}, "
        f"total {format_decimal_hours(totals.total_hours)}"
    )
    click.echo(f"Salary: {format_currency(totals.salary)}")


@cli.command("export")
@click.argument("month", callback=_month_argument)
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@pass_app
@_handle_errors
def export_command(app: AppContext, month: str, output: Path) -> None:
    """Write MONTH's report to OUTPUT as CSV."""

    path = export_report_csv(app.reports.monthly_report(month), output)
    click.echo(f"Export written: {path}")


@cli.command("delete")
@click.argument("month", callback=_month_argument)
@click.option("--yes", is_flag=True, default=False, help="Skip the confirmation prompt")
@pass_app
@_handle_errors
def delete_command(app: AppContext, month: str, yes: bool) -> None:
    """Delete MONTH and its weekly breakdown."""

    if not app.monthly_repo.exists(month):
        click.echo(f"No data stored for {month}.")
        return
    if not yes and not click.confirm(f"Delete {month}?", default=False):
        click.echo("Nothing deleted.")
        return
    app.monthly_repo.delete(month)
    click.echo(f"Deleted {month}.")


@cli.command("rates")
@click.option("--weekday", type=float, default=None, help="New default weekday rate")
@click.option("--weekend", type=float, default=None, help="New default weekend rate")
@pass_app
@_handle_errors
def rates_command(app: AppContext, weekday: Optional[float], weekend: Optional[float]) -> None:
    """Show or update the default hourly rates."""

    current = app.settings.current_rates()
    if weekday is None and weekend is None:
        click.echo(f"Weekday rate: {format_clean(current.weekday)}")
        click.echo(f"Weekend rate: {format_clean(current.weekend)}")
        return

    rates = HourlyRates(
        weekday=weekday if weekday is not None else current.weekday,
        weekend=weekend if weekend is not None else current.weekend,
    )
    count = app.settings.update_default_rates(rates)
    click.echo(f"Default rates set to {format_clean(rates.weekday)} / {format_clean(rates.weekend)}")
    click.echo(f"Recalculated {count} month(s).")


@cli.command("backup")
@click.option("--output-dir", type=click.Path(file_okay=False, path_type=Path), default=None)
@pass_app
@_handle_errors
def backup_command(app: AppContext, output_dir: Optional[Path]) -> None:
    """Snapshot the database into the backups folder."""

    try:
        path = backup_database(app.config, output_dir)
    except (FileNotFoundError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Backup written: {path}")


def main() -> None:
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
