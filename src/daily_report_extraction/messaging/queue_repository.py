"""SQLite-backed processing queue with visibility-timeout semantics."""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from pathlib import Path
from typing import Protocol

from sqlalchemy import delete as sa_delete
from sqlalchemy import func
from sqlalchemy import update as sa_update
from sqlmodel import Session, col, select

from daily_report_extraction.messaging.models import QueueMessage
from daily_report_extraction.storage.alembic_runner import upgrade_head
from daily_report_extraction.storage.common import build_sqlite_engine, to_db_datetime, utc_now
from daily_report_extraction.storage.sqlmodel_models import QueueMessageRecord

logger = logging.getLogger(__name__)


class MessageQueue(Protocol):
    """At-least-once queue: received messages reappear unless deleted."""

    def receive(self) -> QueueMessage | None:
        """Return at most one visible message, hiding it for the visibility timeout."""

    def delete(self, receipt_handle: str) -> bool:
        """Remove a received message permanently."""


class SqliteMessageQueue:
    """Named queue stored in the application SQLite database."""

    def __init__(
        self,
        db_path: Path,
        *,
        queue_name: str,
        visibility_timeout_seconds: int = 300,
        sqlite_busy_timeout_ms: int = 5000,
    ) -> None:
        self.db_path = db_path
        self.queue_name = queue_name
        self.visibility_timeout = timedelta(seconds=visibility_timeout_seconds)
        self.engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=sqlite_busy_timeout_ms)

    def init_schema(self) -> None:
        upgrade_head(self.db_path)

    def close(self) -> None:
        self.engine.dispose()

    def publish(self, body: str) -> str:
        """Append a message and return its id."""

        now = to_db_datetime(utc_now())
        message_id = uuid.uuid4().hex
        with Session(self.engine) as session:
            session.add(
                QueueMessageRecord(
                    message_id=message_id,
                    queue_name=self.queue_name,
                    body=body,
                    receive_count=0,
                    visible_after=now,
                    created_at=now,
                ),
            )
            session.commit()
        logger.debug("Published message %s to %s", message_id, self.queue_name)
        return message_id

    def receive(self) -> QueueMessage | None:
        """Atomically claim the oldest visible message."""

        while True:
            now = to_db_datetime(utc_now())
            with Session(self.engine) as session:
                candidate = session.exec(
                    select(QueueMessageRecord)
                    .where(
                        QueueMessageRecord.queue_name == self.queue_name,
                        QueueMessageRecord.visible_after <= now,
                    )
                    .order_by(
                        col(QueueMessageRecord.visible_after).asc(),
                        col(QueueMessageRecord.created_at).asc(),
                    )
                    .limit(1),
                ).one_or_none()
                if candidate is None:
                    return None

                receipt_handle = uuid.uuid4().hex
                result = session.exec(
                    sa_update(QueueMessageRecord)
                    .where(
                        col(QueueMessageRecord.message_id) == candidate.message_id,
                        col(QueueMessageRecord.visible_after) == candidate.visible_after,
                    )
                    .values(
                        receipt_handle=receipt_handle,
                        receive_count=candidate.receive_count + 1,
                        visible_after=now + self.visibility_timeout,
                    ),
                )
                if result.rowcount != 1:
                    session.rollback()
                    continue
                session.commit()
                return QueueMessage(
                    message_id=candidate.message_id,
                    receipt_handle=receipt_handle,
                    body=candidate.body,
                    receive_count=candidate.receive_count + 1,
                )

    def delete(self, receipt_handle: str) -> bool:
        """Delete by the handle of the latest receive; stale handles are ignored."""

        with Session(self.engine) as session:
            result = session.exec(
                sa_delete(QueueMessageRecord).where(
                    col(QueueMessageRecord.queue_name) == self.queue_name,
                    col(QueueMessageRecord.receipt_handle) == receipt_handle,
                ),
            )
            session.commit()
        deleted = result.rowcount == 1
        if not deleted:
            logger.warning("Delete ignored for unknown receipt handle %s", receipt_handle)
        return deleted

    def count(self, *, visible_only: bool = False) -> int:
        with Session(self.engine) as session:
            statement = select(func.count()).select_from(QueueMessageRecord).where(
                QueueMessageRecord.queue_name == self.queue_name,
            )
            if visible_only:
                statement = statement.where(
                    QueueMessageRecord.visible_after <= to_db_datetime(utc_now()),
                )
            return int(session.exec(statement).one())
