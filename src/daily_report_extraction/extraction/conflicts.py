"""Numeric and semantic consistency checks over extracted report data."""

from __future__ import annotations

import logging

from daily_report_extraction.errors import TransportError
from daily_report_extraction.extraction.model_output import coerce_conflicts, parse_json_object
from daily_report_extraction.extraction.models import (
    ExtractedData,
    SectionName,
    Severity,
    ValidationWarning,
    WarningType,
)
from daily_report_extraction.extraction.prompts import CONFLICT_SYSTEM_PROMPT, build_conflict_prompt
from daily_report_extraction.llm.base import CompletionClient

logger = logging.getLogger(__name__)


def check_workforce_totals(data: ExtractedData) -> list[ValidationWarning]:
    """Flag a stated workforce total that differs from the sum of crews."""

    workforce = data.workforce
    if workforce is None or not workforce.explicit_total or not workforce.crews:
        return []
    crew_sum = workforce.crew_sum
    if crew_sum == workforce.total_workers:
        return []
    return [
        ValidationWarning(
            type=WarningType.WORKFORCE_TOTAL_MISMATCH.value,
            message=(
                f"Workforce total ({workforce.total_workers}) does not match "
                f"sum of crews ({crew_sum})"
            ),
            sections=(SectionName.WORKFORCE.value,),
            severity=Severity.WARNING,
        ),
    ]


class ConflictDetector:
    """Deterministic checks first, then an optional model-backed semantic pass."""

    def __init__(self, client: CompletionClient | None, *, semantic_enabled: bool = True) -> None:
        self.client = client
        self.semantic_enabled = semantic_enabled and client is not None

    def detect(self, data: ExtractedData) -> list[ValidationWarning]:
        return [*check_workforce_totals(data), *self._detect_semantic(data)]

    def _detect_semantic(self, data: ExtractedData) -> list[ValidationWarning]:
        if not self.semantic_enabled or self.client is None:
            return []
        if data.weather is None and data.workforce is None and data.notes is None:
            return []

        try:
            response = self.client.complete(
                build_conflict_prompt(data.to_payload()),
                system_prompt=CONFLICT_SYSTEM_PROMPT,
            )
        except TransportError as error:
            logger.warning("Semantic conflict detection failed: %s", error)
            return []

        payload = parse_json_object(response)
        if payload is None:
            if response.strip():
                logger.warning("Semantic conflict detection returned unparseable output")
            return []
        return coerce_conflicts(payload)
