"""Controllers for worker and local extraction CLI commands."""

from __future__ import annotations

import json
import logging
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from daily_report_extraction.config import Settings
from daily_report_extraction.documents.store import LocalDocumentStore
from daily_report_extraction.extraction.conflicts import ConflictDetector
from daily_report_extraction.extraction.fallback import FallbackExtractor
from daily_report_extraction.extraction.patterns import PatternExtractor
from daily_report_extraction.extraction.pipeline import ExtractionPipeline
from daily_report_extraction.llm.factory import build_completion_client
from daily_report_extraction.messaging.models import JobMessage
from daily_report_extraction.messaging.queue_repository import SqliteMessageQueue
from daily_report_extraction.reports.repository import ReportRepository
from daily_report_extraction.worker.consumer import ConsumerSummary, QueueConsumer
from daily_report_extraction.worker.lifecycle import JobLifecycle
from daily_report_extraction.worker.scheduler import PollScheduler

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WorkerCommand:
    """CLI input for worker execution."""

    db_path: Path | None
    once: bool
    max_jobs: int | None
    max_idle_polls: int = 1
    serve: bool = False


@dataclass(slots=True)
class ExtractFileCommand:
    """CLI input for pattern-only extraction of a local file."""

    file_path: Path


class WorkerCliController:
    """Run the queue worker or a one-off local extraction."""

    def __init__(self) -> None:
        self._shutdown = threading.Event()

    def run_worker(self, command: WorkerCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        settings.validate()

        client = build_completion_client(settings.llm)
        repository = ReportRepository(
            settings.db_path,
            sqlite_busy_timeout_ms=settings.sqlite_busy_timeout_ms,
        )
        queue = SqliteMessageQueue(
            settings.db_path,
            queue_name=settings.queue.name,
            visibility_timeout_seconds=settings.queue.visibility_timeout_seconds,
            sqlite_busy_timeout_ms=settings.sqlite_busy_timeout_ms,
        )
        try:
            repository.init_schema()
            pipeline = ExtractionPipeline(
                text_extractor=LocalDocumentStore(settings.storage.root),
                pattern_extractor=PatternExtractor(
                    notes_high_confidence_min_chars=(
                        settings.extraction.notes_high_confidence_min_chars
                    ),
                ),
                fallback_extractor=FallbackExtractor(client),
                conflict_detector=ConflictDetector(
                    client,
                    semantic_enabled=settings.extraction.semantic_conflicts_enabled,
                ),
            )
            consumer = QueueConsumer(
                queue=queue,
                lifecycle=JobLifecycle(repository=repository, queue=queue, pipeline=pipeline),
                poll_interval_seconds=settings.queue.poll_interval_seconds,
            )
            if command.serve:
                self._serve(consumer, interval_seconds=settings.queue.poll_interval_seconds)
                return ["Worker stopped."]
            if command.once:
                summary = ConsumerSummary()
                summary.record(consumer.tick())
            else:
                summary = consumer.run_loop(
                    max_jobs=command.max_jobs,
                    max_idle_polls=command.max_idle_polls,
                )
        finally:
            queue.close()
            repository.close()
            client.close()

        return [
            "Worker summary: "
            f"processed={summary.processed} succeeded={summary.succeeded} "
            f"failed={summary.failed} dropped={summary.dropped} "
            f"errors={summary.errors} idle_polls={summary.idle_polls}",
        ]

    def extract_file(self, command: ExtractFileCommand) -> list[str]:
        """Run pattern extraction and numeric checks on a local file, no model calls."""

        settings = Settings.from_env()
        path = command.file_path.expanduser().resolve()
        pipeline = ExtractionPipeline(
            text_extractor=LocalDocumentStore(path.parent),
            pattern_extractor=PatternExtractor(
                notes_high_confidence_min_chars=settings.extraction.notes_high_confidence_min_chars,
            ),
            fallback_extractor=None,
            conflict_detector=ConflictDetector(None, semantic_enabled=False),
        )
        job = JobMessage.create(
            job_id=f"local-{path.stem}",
            locator=path.name,
            tenant="local",
            project="local",
            subcontractor="local",
        )
        result = pipeline.run(job)
        payload = result.to_payload()
        payload["sections"] = {
            name.value: {
                "confidence": section.confidence.value,
                "unresolved": section.data is None and section.raw_text is not None,
            }
            for name, section in result.sections.by_name().items()
        }
        return [json.dumps(payload, indent=2, sort_keys=True)]

    def request_shutdown(self) -> None:
        self._shutdown.set()

    def _serve(self, consumer: QueueConsumer, *, interval_seconds: float) -> None:
        scheduler = PollScheduler(consumer, interval_seconds=interval_seconds)
        self._shutdown.clear()
        with self._signal_handlers():
            scheduler.start()
            try:
                while not self._shutdown.wait(1.0):
                    pass
            except KeyboardInterrupt:
                logger.info("Interrupted; stopping worker")
            finally:
                scheduler.stop()

    @contextmanager
    def _signal_handlers(self) -> Iterator[None]:
        def _handler(signum: int, _: object | None) -> None:
            try:
                name = signal.Signals(signum).name
            except ValueError:
                name = str(signum)
            logger.info("Received %s; stopping worker", name)
            self.request_shutdown()

        original = {signum: signal.getsignal(signum) for signum in (signal.SIGINT, signal.SIGTERM)}
        try:
            for signum in original:
                signal.signal(signum, _handler)
            installed = True
        except ValueError:
            # Signal handlers can only be installed in main thread.
            installed = False
        try:
            yield
        finally:
            if installed:
                for signum, handler in original.items():
                    signal.signal(signum, handler)
