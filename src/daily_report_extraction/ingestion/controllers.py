"""Controllers for report submission and inspection CLI commands."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from daily_report_extraction.config import Settings
from daily_report_extraction.documents.store import LocalDocumentStore
from daily_report_extraction.ingestion.service import IngestionService
from daily_report_extraction.messaging.queue_repository import SqliteMessageQueue
from daily_report_extraction.reports.models import ReportStatus
from daily_report_extraction.reports.repository import ReportRepository


@dataclass(slots=True)
class SubmitReportCommand:
    """CLI input for report submission."""

    db_path: Path | None
    file_path: Path
    tenant: str
    project: str
    subcontractor: str


@dataclass(slots=True)
class ReportStatusCommand:
    """CLI input for single report inspection."""

    db_path: Path | None
    job_id: str
    show_data: bool = False


@dataclass(slots=True)
class ListReportsCommand:
    """CLI input for report listing."""

    db_path: Path | None
    status: str | None
    limit: int


class ReportsCliController:
    """Submit daily reports and inspect their processing state."""

    def submit(self, command: SubmitReportCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository, _queue(settings) as queue:
            service = IngestionService(
                store=LocalDocumentStore(settings.storage.root),
                repository=repository,
                queue=queue,
            )
            submitted = service.submit(
                command.file_path,
                tenant=command.tenant,
                project=command.project,
                subcontractor=command.subcontractor,
            )
        report = submitted.report
        return [
            f"Submitted report: {report.job_id}",
            f"Status: {report.status.value}",
            f"Locator: {report.locator}",
            f"Message: {submitted.message_id}",
        ]

    def status(self, command: ReportStatusCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository:
            report = repository.get_report(command.job_id)
        if report is None:
            return [f"Report not found: {command.job_id}"]

        lines = [
            f"Report: {report.job_id}",
            f"Status: {report.status.value}",
            f"Tenant: {report.tenant}",
            f"Project: {report.project}",
            f"Subcontractor: {report.subcontractor}",
            f"File: {report.original_filename or '-'}",
            f"Locator: {report.locator}",
            f"Updated: {report.updated_at.isoformat()}",
            f"Error: {report.error_summary or '-'}",
        ]
        if command.show_data and report.extracted_data is not None:
            lines.append(json.dumps(report.extracted_data, indent=2, sort_keys=True))
        return lines

    def list_reports(self, command: ListReportsCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        status_filter = _parse_status(command.status)
        with _repository(settings) as repository:
            reports = repository.list_reports(status=status_filter, limit=command.limit)

        lines = [f"Reports: {len(reports)}"]
        for report in reports:
            lines.append(
                f"  {report.job_id} status={report.status.value} tenant={report.tenant} "
                f"project={report.project} subcontractor={report.subcontractor} "
                f"created_at={report.created_at.isoformat()}",
            )
        return lines


def _parse_status(value: str | None) -> ReportStatus | None:
    if value is None:
        return None
    try:
        return ReportStatus(value.strip().lower())
    except ValueError as error:
        raise ValueError(f"Unsupported report status: {value!r}") from error


@contextmanager
def _repository(settings: Settings) -> Iterator[ReportRepository]:
    repository = ReportRepository(
        settings.db_path,
        sqlite_busy_timeout_ms=settings.sqlite_busy_timeout_ms,
    )
    repository.init_schema()
    try:
        yield repository
    finally:
        repository.close()


@contextmanager
def _queue(settings: Settings) -> Iterator[SqliteMessageQueue]:
    queue = SqliteMessageQueue(
        settings.db_path,
        queue_name=settings.queue.name,
        visibility_timeout_seconds=settings.queue.visibility_timeout_seconds,
        sqlite_busy_timeout_ms=settings.sqlite_busy_timeout_ms,
    )
    try:
        yield queue
    finally:
        queue.close()
