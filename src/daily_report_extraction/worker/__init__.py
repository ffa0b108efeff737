"""Queue consumer, job lifecycle and poll scheduling."""

from daily_report_extraction.worker.consumer import (
    ConsumerState,
    ConsumerSummary,
    QueueConsumer,
    TickOutcome,
)
from daily_report_extraction.worker.lifecycle import JobLifecycle
from daily_report_extraction.worker.scheduler import PollScheduler

__all__ = [
    "ConsumerState",
    "ConsumerSummary",
    "JobLifecycle",
    "PollScheduler",
    "QueueConsumer",
    "TickOutcome",
]
