"""CLI entrypoint for daily report extraction."""

import logging
from pathlib import Path

import rich_click as click

from daily_report_extraction import __version__
from daily_report_extraction.config import Settings
from daily_report_extraction.ingestion.controllers import (
    ListReportsCommand,
    ReportsCliController,
    ReportStatusCommand,
    SubmitReportCommand,
)
from daily_report_extraction.reports.models import ReportStatus
from daily_report_extraction.worker.controllers import (
    ExtractFileCommand,
    WorkerCliController,
    WorkerCommand,
)

click.rich_click.USE_MARKDOWN = True
REPORTS_CONTROLLER = ReportsCliController()
WORKER_CONTROLLER = WorkerCliController()

_STATUS_CHOICES = [status.value for status in ReportStatus]


@click.group()
@click.version_option(version=__version__, prog_name="daily-report")
def daily_report() -> None:
    """Daily construction report extraction.

    Submit reports, run the **extraction worker**, and inspect results.
    """

    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@daily_report.command("submit")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--tenant", required=True, help="Tenant identifier.")
@click.option("--project", required=True, help="Project identifier.")
@click.option("--subcontractor", required=True, help="Subcontractor name.")
def submit(
    file_path: Path,
    db_path: Path | None,
    tenant: str,
    project: str,
    subcontractor: str,
) -> None:
    """Store a report file and queue it for extraction."""

    _emit_lines(
        REPORTS_CONTROLLER.submit(
            SubmitReportCommand(
                db_path=db_path,
                file_path=file_path,
                tenant=tenant,
                project=project,
                subcontractor=subcontractor,
            ),
        ),
    )


@daily_report.command("worker")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--once", is_flag=True, help="Poll the queue a single time.")
@click.option(
    "--max-jobs",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many processed jobs.",
)
@click.option(
    "--max-idle-polls",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Consecutive empty polls before exiting.",
)
@click.option(
    "--serve",
    is_flag=True,
    help="Poll on a timer until interrupted.",
)
def worker(
    db_path: Path | None,
    once: bool,
    max_jobs: int | None,
    max_idle_polls: int,
    serve: bool,
) -> None:
    """Consume queued reports and run the extraction pipeline."""

    if once and serve:
        raise click.UsageError("--once and --serve are mutually exclusive.")
    _emit_lines(
        WORKER_CONTROLLER.run_worker(
            WorkerCommand(
                db_path=db_path,
                once=once,
                max_jobs=max_jobs,
                max_idle_polls=max_idle_polls,
                serve=serve,
            ),
        ),
    )


@daily_report.command("extract")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def extract(file_path: Path) -> None:
    """Run pattern extraction on a local file and print JSON (no model calls)."""

    _emit_lines(WORKER_CONTROLLER.extract_file(ExtractFileCommand(file_path=file_path)))


@daily_report.command("status")
@click.argument("job_id")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--show-data", is_flag=True, help="Print extracted data as JSON.")
def status(job_id: str, db_path: Path | None, show_data: bool) -> None:
    """Show the processing state of one report."""

    _emit_lines(
        REPORTS_CONTROLLER.status(
            ReportStatusCommand(db_path=db_path, job_id=job_id, show_data=show_data),
        ),
    )


@daily_report.command("reports")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--status",
    "status_filter",
    type=click.Choice(_STATUS_CHOICES),
    default=None,
    help="Only reports in this status.",
)
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=500),
    default=50,
    show_default=True,
    help="Maximum reports to list.",
)
def reports(db_path: Path | None, status_filter: str | None, limit: int) -> None:
    """List recent reports, newest first."""

    _emit_lines(
        REPORTS_CONTROLLER.list_reports(
            ListReportsCommand(db_path=db_path, status=status_filter, limit=limit),
        ),
    )


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    daily_report()
