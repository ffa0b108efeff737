from __future__ import annotations

import json
import signal
import threading
from dataclasses import dataclass, field
from pathlib import Path

import allure

from daily_report_extraction.errors import TransportError
from daily_report_extraction.extraction.conflicts import ConflictDetector
from daily_report_extraction.extraction.fallback import FallbackExtractor
from daily_report_extraction.extraction.patterns import PatternExtractor
from daily_report_extraction.extraction.pipeline import ExtractionPipeline
from daily_report_extraction.messaging.models import JobMessage, QueueMessage
from daily_report_extraction.messaging.queue_repository import SqliteMessageQueue
from daily_report_extraction.reports.models import ReportStatus
from daily_report_extraction.reports.repository import ReportRepository
from daily_report_extraction.worker.consumer import (
    ConsumerState,
    QueueConsumer,
    TickOutcome,
)
from daily_report_extraction.worker.controllers import WorkerCliController
from daily_report_extraction.worker.lifecycle import JobLifecycle
from daily_report_extraction.worker.scheduler import PollScheduler

pytestmark = [
    allure.epic("Processing Queue"),
    allure.feature("Worker"),
]


@dataclass
class RecordingQueue:
    """In-memory queue counting every operation."""

    messages: list[QueueMessage] = field(default_factory=list)
    operations: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    fail_receive: bool = False

    def receive(self) -> QueueMessage | None:
        self.operations.append("receive")
        if self.fail_receive:
            raise TransportError("queue unreachable", transient=True)
        return self.messages.pop(0) if self.messages else None

    def delete(self, receipt_handle: str) -> bool:
        self.operations.append("delete")
        self.deleted.append(receipt_handle)
        return True


class BlockingLifecycle:
    """Lifecycle stub that holds the consumer mid-job until released."""

    def __init__(self) -> None:
        self.started = threading.Event()
        self.release = threading.Event()
        self.jobs: list[str] = []

    def process(self, job: JobMessage, message: QueueMessage) -> bool:
        self.jobs.append(job.job_id)
        self.started.set()
        self.release.wait(5)
        return True


def _message(job_id: str = "job-1", body: str | None = None) -> QueueMessage:
    if body is None:
        body = JobMessage.create(
            job_id=job_id,
            locator=f"reports/{job_id}.txt",
            tenant="acme",
            project="tower",
            subcontractor="abc",
        ).to_body()
    return QueueMessage(
        message_id=f"msg-{job_id}",
        receipt_handle=f"rh-{job_id}",
        body=body,
        receive_count=1,
    )


def _lifecycle(tmp_path: Path, queue, documents, client, text_extractor_factory):
    repository = ReportRepository(tmp_path / "worker.db")
    repository.init_schema()
    pipeline = ExtractionPipeline(
        text_extractor=text_extractor_factory(documents),
        pattern_extractor=PatternExtractor(),
        fallback_extractor=FallbackExtractor(client),
        conflict_detector=ConflictDetector(client),
    )
    return repository, JobLifecycle(repository=repository, queue=queue, pipeline=pipeline)


def _create_report(repository: ReportRepository, job_id: str = "job-1") -> None:
    repository.create_report(
        job_id=job_id,
        tenant="acme",
        project="tower",
        subcontractor="abc",
        locator=f"reports/{job_id}.txt",
    )


def test_reentrant_tick_is_skipped_without_queue_operations() -> None:
    queue = RecordingQueue(messages=[_message()])
    lifecycle = BlockingLifecycle()
    consumer = QueueConsumer(queue=queue, lifecycle=lifecycle)

    worker = threading.Thread(target=consumer.tick)
    worker.start()
    assert lifecycle.started.wait(5)
    operations_before = list(queue.operations)

    assert consumer.state is ConsumerState.POLLING
    assert consumer.tick() is TickOutcome.SKIPPED
    assert queue.operations == operations_before

    lifecycle.release.set()
    worker.join(5)
    assert consumer.state is ConsumerState.IDLE
    assert consumer.tick() is TickOutcome.IDLE_POLL


def test_successful_job_completes_report_and_deletes_message(
    tmp_path: Path, sample_report, fake_client_factory, text_extractor_factory
) -> None:
    queue = RecordingQueue(messages=[_message()])
    repository, lifecycle = _lifecycle(
        tmp_path,
        queue,
        {"reports/job-1.txt": sample_report},
        fake_client_factory(),
        text_extractor_factory,
    )
    _create_report(repository)

    outcome = QueueConsumer(queue=queue, lifecycle=lifecycle).tick()

    assert outcome is TickOutcome.SUCCEEDED
    assert queue.deleted == ["rh-job-1"]
    report = repository.get_report("job-1")
    assert report is not None
    assert report.status is ReportStatus.COMPLETED
    assert report.extracted_data is not None
    assert report.extracted_data["workforce"]["totalWorkers"] == 10
    repository.close()


def test_pipeline_failure_marks_failed_and_keeps_message(
    tmp_path: Path, fake_client_factory, text_extractor_factory
) -> None:
    queue = RecordingQueue(messages=[_message()])
    repository, lifecycle = _lifecycle(
        tmp_path,
        queue,
        {},
        fake_client_factory(),
        text_extractor_factory,
    )
    _create_report(repository)

    outcome = QueueConsumer(queue=queue, lifecycle=lifecycle).tick()

    assert outcome is TickOutcome.FAILED
    assert queue.deleted == []
    report = repository.get_report("job-1")
    assert report is not None
    assert report.status is ReportStatus.FAILED
    assert report.error_summary is not None
    assert "Document not found" in report.error_summary
    repository.close()


def test_redelivered_failed_job_can_succeed(
    tmp_path: Path, sample_report, fake_client_factory, text_extractor_factory
) -> None:
    documents: dict[str, str] = {}
    queue = RecordingQueue(messages=[_message(), _message()])
    repository, lifecycle = _lifecycle(
        tmp_path,
        queue,
        documents,
        fake_client_factory(),
        text_extractor_factory,
    )
    _create_report(repository)
    consumer = QueueConsumer(queue=queue, lifecycle=lifecycle)

    assert consumer.tick() is TickOutcome.FAILED
    documents["reports/job-1.txt"] = sample_report
    assert consumer.tick() is TickOutcome.SUCCEEDED

    report = repository.get_report("job-1")
    assert report is not None
    assert report.status is ReportStatus.COMPLETED
    repository.close()


def test_malformed_message_is_dropped_without_status_change(
    tmp_path: Path, fake_client_factory, text_extractor_factory
) -> None:
    queue = RecordingQueue(messages=[_message(body=json.dumps({"jobId": "job-1"}))])
    repository, lifecycle = _lifecycle(
        tmp_path,
        queue,
        {},
        fake_client_factory(),
        text_extractor_factory,
    )
    _create_report(repository)

    outcome = QueueConsumer(queue=queue, lifecycle=lifecycle).tick()

    assert outcome is TickOutcome.DROPPED
    assert queue.operations == ["receive"]
    report = repository.get_report("job-1")
    assert report is not None
    assert report.status is ReportStatus.PENDING
    repository.close()


def test_receive_failure_ends_tick_with_error() -> None:
    queue = RecordingQueue(fail_receive=True)
    consumer = QueueConsumer(queue=queue, lifecycle=BlockingLifecycle())

    assert consumer.tick() is TickOutcome.ERROR
    assert consumer.state is ConsumerState.IDLE


def test_run_loop_drains_queue_and_counts_outcomes() -> None:
    lifecycle = BlockingLifecycle()
    lifecycle.release.set()
    queue = RecordingQueue(
        messages=[_message("job-1"), _message(body="not json"), _message("job-2")],
    )
    consumer = QueueConsumer(queue=queue, lifecycle=lifecycle, poll_interval_seconds=0.01)

    summary = consumer.run_loop(max_idle_polls=1)

    assert summary.processed == 2
    assert summary.succeeded == 2
    assert summary.dropped == 1
    assert summary.idle_polls == 1
    assert lifecycle.jobs == ["job-1", "job-2"]


def test_run_loop_stops_after_max_jobs() -> None:
    lifecycle = BlockingLifecycle()
    lifecycle.release.set()
    queue = RecordingQueue(messages=[_message("job-1"), _message("job-2")])
    consumer = QueueConsumer(queue=queue, lifecycle=lifecycle)

    summary = consumer.run_loop(max_jobs=1)

    assert summary.processed == 1
    assert len(queue.messages) == 1


def test_scheduler_drops_ticks_while_a_job_is_in_flight() -> None:
    queue = RecordingQueue(messages=[_message("job-1"), _message("job-2")])
    lifecycle = BlockingLifecycle()
    consumer = QueueConsumer(queue=queue, lifecycle=lifecycle)
    scheduler = PollScheduler(consumer, interval_seconds=0.01)

    scheduler.start()
    try:
        assert lifecycle.started.wait(5)
        in_flight_receives = queue.operations.count("receive")
        threading.Event().wait(0.1)
        assert queue.operations.count("receive") == in_flight_receives
        assert lifecycle.jobs == ["job-1"]
    finally:
        lifecycle.release.set()
        scheduler.stop(timeout=5)
    assert scheduler.running is False


def test_sqlite_queue_end_to_end(
    tmp_path: Path, sample_report, fake_client_factory, text_extractor_factory
) -> None:
    queue = SqliteMessageQueue(tmp_path / "worker.db", queue_name="q")
    repository, lifecycle = _lifecycle(
        tmp_path,
        queue,
        {"reports/job-1.txt": sample_report},
        fake_client_factory(),
        text_extractor_factory,
    )
    _create_report(repository)
    queue.publish(_message().body)

    summary = QueueConsumer(queue=queue, lifecycle=lifecycle).run_loop()

    assert summary.succeeded == 1
    assert queue.count() == 0
    repository.close()
    queue.close()


def test_duplicate_delivery_of_completed_job_is_acknowledged(
    tmp_path: Path, sample_report, fake_client_factory, text_extractor_factory
) -> None:
    queue = SqliteMessageQueue(tmp_path / "worker.db", queue_name="q", visibility_timeout_seconds=1)
    text_extractor = text_extractor_factory({"reports/job-1.txt": sample_report})
    client = fake_client_factory()
    repository = ReportRepository(tmp_path / "worker.db")
    repository.init_schema()
    pipeline = ExtractionPipeline(
        text_extractor=text_extractor,
        pattern_extractor=PatternExtractor(),
        fallback_extractor=FallbackExtractor(client),
        conflict_detector=ConflictDetector(client),
    )
    lifecycle = JobLifecycle(repository=repository, queue=queue, pipeline=pipeline)
    _create_report(repository)
    body = _message().body
    queue.publish(body)
    queue.publish(body)
    consumer = QueueConsumer(queue=queue, lifecycle=lifecycle)

    outcomes = [consumer.tick(), consumer.tick(), consumer.tick()]

    assert outcomes == [TickOutcome.SUCCEEDED, TickOutcome.SUCCEEDED, TickOutcome.IDLE_POLL]
    assert queue.count() == 0
    assert text_extractor.requested == ["reports/job-1.txt"]
    report = repository.get_report("job-1")
    assert report is not None
    assert report.status is ReportStatus.COMPLETED
    assert report.error_summary is None
    repository.close()
    queue.close()


def test_serve_returns_after_shutdown_request() -> None:
    controller = WorkerCliController()
    consumer = QueueConsumer(queue=RecordingQueue(), lifecycle=BlockingLifecycle())
    timer = threading.Timer(0.05, controller.request_shutdown)

    timer.start()
    controller._serve(consumer, interval_seconds=0.01)
    timer.join()

    assert consumer.state is ConsumerState.IDLE


def test_sigterm_requests_worker_shutdown() -> None:
    controller = WorkerCliController()
    previous = signal.getsignal(signal.SIGTERM)

    with controller._signal_handlers():
        signal.raise_signal(signal.SIGTERM)

    assert controller._shutdown.is_set()
    assert signal.getsignal(signal.SIGTERM) is previous
