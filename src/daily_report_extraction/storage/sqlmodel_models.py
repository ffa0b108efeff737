"""SQLModel ORM tables for report and queue storage."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Text
from sqlmodel import Field, SQLModel


class DailyReport(SQLModel, table=True):
    __tablename__ = "daily_reports"  # type: ignore[bad-override]

    job_id: str = Field(primary_key=True)
    tenant: str = Field(index=True)
    project: str = Field(index=True)
    subcontractor: str
    locator: str
    original_filename: str | None = None
    status: str = Field(index=True)
    extracted_data: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    error_summary: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class QueueMessageRecord(SQLModel, table=True):
    __tablename__ = "queue_messages"  # type: ignore[bad-override]
    __table_args__ = (
        Index("idx_queue_messages_queue_visible", "queue_name", "visible_after"),
    )

    message_id: str = Field(primary_key=True)
    queue_name: str
    body: str = Field(sa_column=Column(Text, nullable=False))
    receipt_handle: str | None = Field(default=None, index=True)
    receive_count: int = 0
    visible_after: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
