"""Job messages and the processing queue transport."""

from daily_report_extraction.messaging.models import JobMessage, QueueMessage, parse_job_message
from daily_report_extraction.messaging.queue_repository import MessageQueue, SqliteMessageQueue

__all__ = [
    "JobMessage",
    "MessageQueue",
    "QueueMessage",
    "SqliteMessageQueue",
    "parse_job_message",
]
