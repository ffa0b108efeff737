"""Report status lifecycle and read models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class ReportStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# FAILED -> PROCESSING and PROCESSING -> PROCESSING cover queue redelivery.
ALLOWED_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    ReportStatus.PENDING: frozenset({ReportStatus.PROCESSING}),
    ReportStatus.PROCESSING: frozenset(
        {ReportStatus.PROCESSING, ReportStatus.COMPLETED, ReportStatus.FAILED},
    ),
    ReportStatus.FAILED: frozenset({ReportStatus.PROCESSING}),
    ReportStatus.COMPLETED: frozenset(),
}


def is_allowed_transition(current: ReportStatus, target: ReportStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


@dataclass(slots=True)
class ReportView:
    """Read model of one stored daily report."""

    job_id: str
    tenant: str
    project: str
    subcontractor: str
    locator: str
    original_filename: str | None
    status: ReportStatus
    extracted_data: dict[str, Any] | None
    error_summary: str | None
    created_at: datetime
    updated_at: datetime
