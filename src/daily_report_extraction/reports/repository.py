"""SQLite repository for daily report records."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from sqlalchemy import update as sa_update
from sqlmodel import Session, col, select

from daily_report_extraction.errors import InvalidStatusTransitionError
from daily_report_extraction.extraction.models import ExtractedData
from daily_report_extraction.reports.models import ReportStatus, ReportView, is_allowed_transition
from daily_report_extraction.storage.alembic_runner import upgrade_head
from daily_report_extraction.storage.common import (
    as_utc,
    build_sqlite_engine,
    to_db_datetime,
    utc_now,
)
from daily_report_extraction.storage.sqlmodel_models import DailyReport

logger = logging.getLogger(__name__)


class ReportRepository:
    """Persistence of report metadata, processing status and extracted data."""

    def __init__(self, db_path: Path, *, sqlite_busy_timeout_ms: int = 5000) -> None:
        self.db_path = db_path
        self.engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=sqlite_busy_timeout_ms)

    def init_schema(self) -> None:
        """Run schema migrations."""

        upgrade_head(self.db_path)

    def close(self) -> None:
        self.engine.dispose()

    def create_report(
        self,
        *,
        job_id: str,
        tenant: str,
        project: str,
        subcontractor: str,
        locator: str,
        original_filename: str | None = None,
    ) -> ReportView:
        """Insert a new report in PENDING status."""

        now = to_db_datetime(utc_now())
        row = DailyReport(
            job_id=job_id,
            tenant=tenant,
            project=project,
            subcontractor=subcontractor,
            locator=locator,
            original_filename=original_filename,
            status=ReportStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        with Session(self.engine) as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_report_view(row)

    def get_report(self, job_id: str) -> ReportView | None:
        with Session(self.engine) as session:
            row = session.get(DailyReport, job_id)
            return _to_report_view(row) if row is not None else None

    def list_reports(
        self,
        *,
        status: ReportStatus | None = None,
        limit: int = 50,
    ) -> list[ReportView]:
        """Newest reports first, optionally filtered by status."""

        with Session(self.engine) as session:
            statement = select(DailyReport)
            if status is not None:
                statement = statement.where(DailyReport.status == status.value)
            rows = session.exec(
                statement.order_by(
                    col(DailyReport.created_at).desc(),
                    col(DailyReport.job_id).asc(),
                ).limit(max(1, limit)),
            ).all()
            return [_to_report_view(row) for row in rows]

    def find_and_update_status(
        self,
        job_id: str,
        status: ReportStatus,
        *,
        error_summary: str | None = None,
    ) -> bool:
        """Move a report to ``status``; returns False when the report does not exist."""

        return self._transition(job_id, status, extracted_data=None, error_summary=error_summary)

    def find_and_update_result(
        self,
        job_id: str,
        data: ExtractedData,
        status: ReportStatus,
    ) -> bool:
        """Store extracted data and the new status in one update."""

        payload = json.dumps(data.to_payload(), ensure_ascii=False, sort_keys=True)
        return self._transition(job_id, status, extracted_data=payload, error_summary=None)

    def _transition(
        self,
        job_id: str,
        status: ReportStatus,
        *,
        extracted_data: str | None,
        error_summary: str | None,
    ) -> bool:
        with Session(self.engine) as session:
            row = session.get(DailyReport, job_id)
            if row is None:
                logger.warning("Report %s not found; status %s not applied", job_id, status.value)
                return False

            current = ReportStatus(row.status)
            if not is_allowed_transition(current, status):
                raise InvalidStatusTransitionError(
                    f"Report {job_id}: transition {current.value} -> {status.value} "
                    "is not allowed.",
                )

            values: dict[str, object] = {
                "status": status.value,
                "error_summary": error_summary,
                "updated_at": to_db_datetime(utc_now()),
            }
            if extracted_data is not None:
                values["extracted_data"] = extracted_data
            result = session.exec(
                sa_update(DailyReport)
                .where(
                    col(DailyReport.job_id) == job_id,
                    col(DailyReport.status) == current.value,
                )
                .values(**values),
            )
            if result.rowcount != 1:
                session.rollback()
                raise InvalidStatusTransitionError(
                    f"Report {job_id}: status changed concurrently from {current.value}.",
                )
            session.commit()
        logger.info("Report %s: %s -> %s", job_id, current.value, status.value)
        return True


def _to_report_view(row: DailyReport) -> ReportView:
    return ReportView(
        job_id=row.job_id,
        tenant=row.tenant,
        project=row.project,
        subcontractor=row.subcontractor,
        locator=row.locator,
        original_filename=row.original_filename,
        status=ReportStatus(row.status),
        extracted_data=json.loads(row.extracted_data) if row.extracted_data else None,
        error_summary=row.error_summary,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )
