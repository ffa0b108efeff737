"""Status bookkeeping and message acknowledgement around one extraction job."""

from __future__ import annotations

import logging

from daily_report_extraction.errors import TransportError
from daily_report_extraction.extraction.pipeline import ExtractionPipeline
from daily_report_extraction.messaging.models import JobMessage, QueueMessage
from daily_report_extraction.messaging.queue_repository import MessageQueue
from daily_report_extraction.reports.models import ReportStatus
from daily_report_extraction.reports.repository import ReportRepository

logger = logging.getLogger(__name__)

_MAX_ERROR_SUMMARY_CHARS = 2000


class JobLifecycle:
    """PROCESSING -> run -> COMPLETED + delete, or FAILED with the message left for redelivery."""

    def __init__(
        self,
        *,
        repository: ReportRepository,
        queue: MessageQueue,
        pipeline: ExtractionPipeline,
    ) -> None:
        self.repository = repository
        self.queue = queue
        self.pipeline = pipeline

    def process(self, job: JobMessage, message: QueueMessage) -> bool:
        """Run one job; returns True when the report reached COMPLETED."""

        logger.info(
            "Processing report %s from %s (delivery %d)",
            job.job_id,
            job.locator,
            message.receive_count,
        )
        try:
            if self._already_completed(job):
                self._acknowledge(job, message)
                return True
            if not self.repository.find_and_update_status(job.job_id, ReportStatus.PROCESSING):
                logger.warning("Report %s has no stored record; extracting anyway", job.job_id)
            result = self.pipeline.run(job)
            self.repository.find_and_update_result(job.job_id, result.data, ReportStatus.COMPLETED)
        except Exception as error:  # noqa: BLE001
            logger.error(
                "Failed to process report %s (transient=%s): %s",
                job.job_id,
                isinstance(error, TransportError) and error.transient,
                error,
            )
            self._mark_failed(job, error)
            return False

        self._acknowledge(job, message)
        logger.info(
            "Processed report %s: warnings=%d fallback_sections=%d",
            job.job_id,
            len(result.warnings),
            len(result.fallback_sections),
        )
        return True

    def _already_completed(self, job: JobMessage) -> bool:
        report = self.repository.get_report(job.job_id)
        if report is None or report.status is not ReportStatus.COMPLETED:
            return False
        logger.info(
            "Report %s is already completed; acknowledging duplicate delivery",
            job.job_id,
        )
        return True

    def _mark_failed(self, job: JobMessage, error: Exception) -> None:
        try:
            self.repository.find_and_update_status(
                job.job_id,
                ReportStatus.FAILED,
                error_summary=str(error)[:_MAX_ERROR_SUMMARY_CHARS] or type(error).__name__,
            )
        except Exception:  # noqa: BLE001
            logger.exception("Could not mark report %s as failed", job.job_id)

    def _acknowledge(self, job: JobMessage, message: QueueMessage) -> None:
        try:
            self.queue.delete(message.receipt_handle)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Report %s completed but its message could not be deleted",
                job.job_id,
            )
