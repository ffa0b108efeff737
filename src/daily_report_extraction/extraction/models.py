"""Domain models for section extraction, confidence, and validation warnings."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Confidence(str, Enum):
    """How trustworthy a section's structured extraction is."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SectionName(str, Enum):
    """The four structured categories of a daily report."""

    WEATHER = "weather"
    WORKFORCE = "workforce"
    WORK_AREAS = "workAreas"
    NOTES = "notes"


class Severity(str, Enum):
    """Validation warning severity."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class WarningType(str, Enum):
    """Known conflict categories."""

    WORKFORCE_TOTAL_MISMATCH = "workforce_total_mismatch"
    WEATHER_INCONSISTENCY = "weather_inconsistency"
    WORK_AREA_CONFLICT = "work_area_conflict"
    CROSS_SECTION_CONFLICT = "cross_section_conflict"
    OTHER = "other"


@dataclass(slots=True)
class WeatherData:
    conditions: str = ""
    temperature_high: int = 0
    temperature_low: int = 0
    notes: str = ""

    def to_payload(self) -> dict[str, Any]:
        return {
            "conditions": self.conditions,
            "temperatureHigh": self.temperature_high,
            "temperatureLow": self.temperature_low,
            "notes": self.notes,
        }


@dataclass(slots=True)
class Crew:
    trade: str
    count: int
    subcontractor: str

    def to_payload(self) -> dict[str, Any]:
        return {"trade": self.trade, "count": self.count, "subcontractor": self.subcontractor}


@dataclass(slots=True)
class WorkforceData:
    total_workers: int = 0
    crews: list[Crew] = field(default_factory=list)
    notes: str = ""
    # False when total_workers was derived from the crew sum
    explicit_total: bool = False

    @property
    def crew_sum(self) -> int:
        return sum(crew.count for crew in self.crews)

    def to_payload(self) -> dict[str, Any]:
        return {
            "totalWorkers": self.total_workers,
            "crews": [crew.to_payload() for crew in self.crews],
            "notes": self.notes,
        }


@dataclass(slots=True)
class WorkArea:
    name: str
    status: str
    notes: str = ""

    def to_payload(self) -> dict[str, Any]:
        return {"name": self.name, "status": self.status, "notes": self.notes}


@dataclass(slots=True)
class ExtractedData:
    """Persisted result shape; sections absent from the source stay ``None``."""

    weather: WeatherData | None = None
    workforce: WorkforceData | None = None
    work_areas: list[WorkArea] | None = None
    notes: str | None = None

    def is_empty(self) -> bool:
        return (
            self.weather is None
            and self.workforce is None
            and self.work_areas is None
            and self.notes is None
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase wire shape, omitting absent sections."""

        payload: dict[str, Any] = {}
        if self.weather is not None:
            payload["weather"] = self.weather.to_payload()
        if self.workforce is not None:
            payload["workforce"] = self.workforce.to_payload()
        if self.work_areas is not None:
            payload["workAreas"] = [area.to_payload() for area in self.work_areas]
        if self.notes is not None:
            payload["notes"] = self.notes
        return payload


@dataclass(slots=True)
class SectionResult(Generic[T]):
    """Outcome of extracting one section.

    A section flagged for fallback is always LOW confidence; constructing any
    other combination raises ``ValueError``.
    """

    data: T | None
    confidence: Confidence
    needs_fallback: bool = False
    raw_text: str | None = None

    def __post_init__(self) -> None:
        if self.needs_fallback and self.confidence is not Confidence.LOW:
            raise ValueError(
                f"Section needing fallback must be LOW confidence, got {self.confidence.value}.",
            )

    @classmethod
    def absent(cls) -> SectionResult[T]:
        """Section header not found: nothing to extract, nothing ambiguous."""

        return cls(data=None, confidence=Confidence.LOW, needs_fallback=False, raw_text=None)

    @classmethod
    def ambiguous(cls, raw_text: str) -> SectionResult[T]:
        """Section found but patterns could not resolve it."""

        return cls(data=None, confidence=Confidence.LOW, needs_fallback=True, raw_text=raw_text)


@dataclass(slots=True)
class StructuredExtraction:
    """Pattern extractor output for all four sections."""

    weather: SectionResult[WeatherData]
    workforce: SectionResult[WorkforceData]
    work_areas: SectionResult[list[WorkArea]]
    notes: SectionResult[str]

    def by_name(self) -> dict[SectionName, SectionResult[Any]]:
        return {
            SectionName.WEATHER: self.weather,
            SectionName.WORKFORCE: self.workforce,
            SectionName.WORK_AREAS: self.work_areas,
            SectionName.NOTES: self.notes,
        }

    def sections_needing_fallback(self) -> list[SectionName]:
        return [name for name, section in self.by_name().items() if section.needs_fallback]


@dataclass(frozen=True, slots=True)
class ValidationWarning:
    type: str
    message: str
    sections: tuple[str, ...]
    severity: Severity

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "message": self.message,
            "sections": list(self.sections),
            "severity": self.severity.value,
        }


@dataclass(slots=True)
class StageTimings:
    """Per-stage wall time in milliseconds."""

    text_extraction_ms: float = 0.0
    pattern_extraction_ms: float = 0.0
    fallback_ms: float = 0.0
    conflict_detection_ms: float = 0.0
    total_ms: float = 0.0

    def to_payload(self) -> dict[str, float]:
        return {
            "textExtractionTime": round(self.text_extraction_ms, 3),
            "patternExtractionTime": round(self.pattern_extraction_ms, 3),
            "fallbackTime": round(self.fallback_ms, 3),
            "conflictDetectionTime": round(self.conflict_detection_ms, 3),
            "totalTime": round(self.total_ms, 3),
        }


@dataclass(slots=True)
class ExtractionResult:
    """Aggregate pipeline output for one job."""

    data: ExtractedData
    sections: StructuredExtraction
    warnings: list[ValidationWarning]
    fallback_sections: list[SectionName]
    overall_confidence: Confidence
    timings: StageTimings

    def to_payload(self) -> dict[str, Any]:
        return {
            "data": self.data.to_payload(),
            "warnings": [warning.to_payload() for warning in self.warnings],
            "fallbackSections": [name.value for name in self.fallback_sections],
            "overallConfidence": self.overall_confidence.value,
            "metadata": self.timings.to_payload(),
        }
