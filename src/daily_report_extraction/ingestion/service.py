"""Accept uploaded daily reports for asynchronous extraction."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from daily_report_extraction.documents.store import LocalDocumentStore
from daily_report_extraction.messaging.models import JobMessage
from daily_report_extraction.messaging.queue_repository import SqliteMessageQueue
from daily_report_extraction.reports.models import ReportView
from daily_report_extraction.reports.repository import ReportRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SubmittedReport:
    report: ReportView
    message_id: str


class IngestionService:
    def __init__(
        self,
        *,
        store: LocalDocumentStore,
        repository: ReportRepository,
        queue: SqliteMessageQueue,
    ) -> None:
        self.store = store
        self.repository = repository
        self.queue = queue

    def submit(
        self,
        source: Path,
        *,
        tenant: str,
        project: str,
        subcontractor: str,
    ) -> SubmittedReport:
        """Store ``source``, create a PENDING report and publish its job message."""

        fields = {"tenant": tenant, "project": project, "subcontractor": subcontractor}
        for name, value in fields.items():
            if not value.strip():
                raise ValueError(f"{name} must not be empty.")
        if not source.is_file():
            raise ValueError(f"Report file not found: {source}")

        locator = self.store.put(source, prefix=f"reports/{tenant}/{project}")
        job_id = uuid.uuid4().hex
        report = self.repository.create_report(
            job_id=job_id,
            tenant=tenant,
            project=project,
            subcontractor=subcontractor,
            locator=locator,
            original_filename=source.name,
        )
        job = JobMessage.create(
            job_id=job_id,
            locator=locator,
            tenant=tenant,
            project=project,
            subcontractor=subcontractor,
        )
        message_id = self.queue.publish(job.to_body())
        logger.info("Submitted report %s (%s) as message %s", job_id, source.name, message_id)
        return SubmittedReport(report=report, message_id=message_id)
