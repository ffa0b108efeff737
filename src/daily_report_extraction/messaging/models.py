"""Wire format of processing jobs on the queue."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from daily_report_extraction.errors import MalformedMessageError
from daily_report_extraction.storage.common import from_iso, utc_now

# Wire key -> accepted aliases, in lookup order.
_FIELD_KEYS: dict[str, tuple[str, ...]] = {
    "job_id": ("jobId", "reportId"),
    "locator": ("locator", "s3Key"),
    "tenant": ("tenant",),
    "project": ("project",),
    "subcontractor": ("subcontractor",),
}


@dataclass(frozen=True, slots=True)
class JobMessage:
    """One processing request, immutable once read off the queue."""

    job_id: str
    locator: str
    tenant: str
    project: str
    subcontractor: str
    published_at: datetime

    @classmethod
    def create(
        cls,
        *,
        job_id: str,
        locator: str,
        tenant: str,
        project: str,
        subcontractor: str,
    ) -> JobMessage:
        return cls(
            job_id=job_id,
            locator=locator,
            tenant=tenant,
            project=project,
            subcontractor=subcontractor,
            published_at=utc_now(),
        )

    def to_payload(self) -> dict[str, str]:
        return {
            "jobId": self.job_id,
            "locator": self.locator,
            "tenant": self.tenant,
            "project": self.project,
            "subcontractor": self.subcontractor,
            "publishedAt": self.published_at.isoformat(),
        }

    def to_body(self) -> str:
        return json.dumps(self.to_payload(), sort_keys=True)


@dataclass(frozen=True, slots=True)
class QueueMessage:
    """A received message; ``receipt_handle`` is required to delete it."""

    message_id: str
    receipt_handle: str
    body: str
    receive_count: int


def parse_job_message(body: str) -> JobMessage:
    """Parse a queue message body, raising ``MalformedMessageError`` on any defect."""

    try:
        payload: Any = json.loads(body)
    except (TypeError, json.JSONDecodeError) as error:
        raise MalformedMessageError(f"Message body is not valid JSON: {error}") from error
    if not isinstance(payload, dict):
        raise MalformedMessageError("Message body must be a JSON object.")

    values: dict[str, str] = {}
    for field_name, keys in _FIELD_KEYS.items():
        value = next((payload[key] for key in keys if key in payload), None)
        if not isinstance(value, str) or not value.strip():
            raise MalformedMessageError(f"Message field {keys[0]!r} is missing or empty.")
        values[field_name] = value.strip()

    published_raw = payload.get("publishedAt")
    if not isinstance(published_raw, str) or not published_raw.strip():
        raise MalformedMessageError("Message field 'publishedAt' is missing or empty.")
    try:
        published_at = from_iso(published_raw.strip().replace("Z", "+00:00"))
    except ValueError as error:
        raise MalformedMessageError(
            f"Message field 'publishedAt' is not ISO-8601: {published_raw!r}",
        ) from error

    return JobMessage(published_at=published_at, **values)
