"""Single-flight queue consumer."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum

from daily_report_extraction.errors import MalformedMessageError
from daily_report_extraction.messaging.models import parse_job_message
from daily_report_extraction.messaging.queue_repository import MessageQueue
from daily_report_extraction.worker.lifecycle import JobLifecycle

logger = logging.getLogger(__name__)


class ConsumerState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"


class TickOutcome(str, Enum):
    SKIPPED = "skipped"
    IDLE_POLL = "idle_poll"
    DROPPED = "dropped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ERROR = "error"


@dataclass(slots=True)
class ConsumerSummary:
    """Aggregate consumer counters for CLI reporting."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    dropped: int = 0
    skipped: int = 0
    idle_polls: int = 0
    errors: int = 0

    def record(self, outcome: TickOutcome) -> None:
        if outcome is TickOutcome.SKIPPED:
            self.skipped += 1
        elif outcome is TickOutcome.IDLE_POLL:
            self.idle_polls += 1
        elif outcome is TickOutcome.DROPPED:
            self.dropped += 1
        elif outcome is TickOutcome.ERROR:
            self.errors += 1
        else:
            self.processed += 1
            if outcome is TickOutcome.SUCCEEDED:
                self.succeeded += 1
            else:
                self.failed += 1


class QueueConsumer:
    """Receives at most one message per tick and never overlaps ticks.

    The guard is a lock taken without blocking: a tick that finds it held
    returns ``SKIPPED`` without touching the queue, so ticks arriving while a
    job is in flight are dropped rather than queued.
    """

    def __init__(
        self,
        *,
        queue: MessageQueue,
        lifecycle: JobLifecycle,
        poll_interval_seconds: float = 5.0,
    ) -> None:
        self.queue = queue
        self.lifecycle = lifecycle
        self.poll_interval_seconds = poll_interval_seconds
        self._guard = threading.Lock()
        self._stop = threading.Event()

    @property
    def state(self) -> ConsumerState:
        return ConsumerState.POLLING if self._guard.locked() else ConsumerState.IDLE

    def tick(self) -> TickOutcome:
        if not self._guard.acquire(blocking=False):
            logger.debug("Poll skipped: previous cycle still running")
            return TickOutcome.SKIPPED
        try:
            return self._poll()
        finally:
            self._guard.release()

    def stop(self) -> None:
        self._stop.set()

    def run_loop(
        self,
        *,
        max_jobs: int | None = None,
        max_idle_polls: int = 1,
    ) -> ConsumerSummary:
        """Tick until the queue stays empty for ``max_idle_polls`` polls or ``max_jobs`` ran."""

        summary = ConsumerSummary()
        consecutive_idle = 0
        while not self._stop.is_set():
            if max_jobs is not None and summary.processed >= max_jobs:
                break

            outcome = self.tick()
            summary.record(outcome)
            if outcome in (TickOutcome.IDLE_POLL, TickOutcome.ERROR):
                consecutive_idle += 1
                if consecutive_idle >= max_idle_polls:
                    break
                self._stop.wait(self.poll_interval_seconds)
                continue
            consecutive_idle = 0
        return summary

    def _poll(self) -> TickOutcome:
        try:
            message = self.queue.receive()
        except Exception:  # noqa: BLE001
            logger.exception("Queue receive failed")
            return TickOutcome.ERROR
        if message is None:
            return TickOutcome.IDLE_POLL

        try:
            job = parse_job_message(message.body)
        except MalformedMessageError as error:
            logger.error("Dropping malformed message %s: %s", message.message_id, error)
            return TickOutcome.DROPPED

        if self.lifecycle.process(job, message):
            return TickOutcome.SUCCEEDED
        return TickOutcome.FAILED
