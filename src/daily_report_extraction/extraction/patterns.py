"""Deterministic, regex-based extraction of daily report sections."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import TypeVar

from daily_report_extraction.errors import SectionParseError
from daily_report_extraction.extraction.boundaries import BoundaryMatcher
from daily_report_extraction.extraction.confidence import (
    notes_confidence,
    weather_confidence,
    work_areas_confidence,
    workforce_confidence,
)
from daily_report_extraction.extraction.models import (
    Confidence,
    Crew,
    SectionName,
    SectionResult,
    StructuredExtraction,
    WeatherData,
    WorkArea,
    WorkforceData,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_NOTES_HIGH_CONFIDENCE_MIN_CHARS = 10
DEFAULT_CREW_TRADE = "General"
MIN_PLAUSIBLE_TEMPERATURE = -100
MAX_PLAUSIBLE_TEMPERATURE = 150
MAX_PLAUSIBLE_CREW_COUNT = 10_000

_TEMP_SUFFIX = r"(?:[ \t]+temp(?:erature)?)?[ \t]*[:=]?[ \t]*(-?\d+)[ \t]*°?(?:[FC](?![A-Za-z]))?"
_TEMP_HIGH = re.compile(rf"\b(?:high|max(?:imum)?)\b{_TEMP_SUFFIX}", re.IGNORECASE)
_TEMP_LOW = re.compile(rf"\b(?:low|min(?:imum)?)\b{_TEMP_SUFFIX}", re.IGNORECASE)
_TEMP_RANGE = re.compile(
    r"(\d+)\s*°?\s*[-/]\s*(\d+)\s*(?:°\s*[FC]?|[FC]\b)",
    re.IGNORECASE,
)
_CONDITIONS = re.compile(
    r"\b(?:sky|conditions?|weather)[ \t]*:[ \t]*([A-Za-z][A-Za-z \t]*?)[ \t]*(?=\n|,|;|\.|$)",
    re.IGNORECASE,
)

_CREW_TABLE_ROW = re.compile(r"^\s*([^|\n]+?)\s*\|\s*([^|\n]+?)\s*\|\s*(\d+)\b")
_CREW_FREE_TEXT = re.compile(
    r"^\s*([A-Za-z][A-Za-z0-9 &.,'/-]*?)\s*[:\-]\s*(\d+)\s*(?:workers?|men|people|crew)\b",
    re.IGNORECASE,
)
_WORKFORCE_TOTAL = re.compile(
    r"\btotal(?:[ \t]+(?:workers?|manpower|headcount|crew))?[ \t]*:?[ \t]*(\d+)",
    re.IGNORECASE,
)

_AREA_STATUS_WORDS = r"in\s*progress|completed?|pending|started|delayed|on\s*hold"
_AREA_FREE_TEXT = re.compile(
    rf"^\s*([A-Za-z0-9][A-Za-z0-9 #.'/-]*?)\s*[:\-]\s*({_AREA_STATUS_WORDS})\b(.*)$",
    re.IGNORECASE,
)
_AREA_TABLE_ROW = re.compile(r"^\s*([^|\n]+?)\s*\|\s*([^|\n]+?)\s*(?:\|\s*([^|\n]*?)\s*)?\|?\s*$")
_TABLE_HEADER_STATUSES = {"status", "state", "progress"}
_LEADING_SEPARATORS = " \t-–,;:."


class PatternExtractor:
    """Maps raw report text to four independently extracted sections.

    Pure and deterministic: no I/O, identical input yields identical output.
    """

    def __init__(
        self,
        *,
        boundary_matcher: BoundaryMatcher | None = None,
        notes_high_confidence_min_chars: int = DEFAULT_NOTES_HIGH_CONFIDENCE_MIN_CHARS,
    ) -> None:
        self.boundary_matcher = boundary_matcher or BoundaryMatcher.from_synonyms()
        self.notes_high_confidence_min_chars = notes_high_confidence_min_chars

    def extract(self, text: str) -> StructuredExtraction:
        result = StructuredExtraction(
            weather=self._extract_section(text, SectionName.WEATHER, self._parse_weather),
            workforce=self._extract_section(text, SectionName.WORKFORCE, self._parse_workforce),
            work_areas=self._extract_section(text, SectionName.WORK_AREAS, self._parse_work_areas),
            notes=self._extract_section(text, SectionName.NOTES, self._parse_notes),
        )
        pending = result.sections_needing_fallback()
        logger.debug(
            "Pattern extraction complete; sections needing fallback: %s",
            ", ".join(name.value for name in pending) if pending else "none",
        )
        return result

    def _extract_section(
        self,
        text: str,
        section: SectionName,
        parse: Callable[[str], SectionResult[T]],
    ) -> SectionResult[T]:
        body = self.boundary_matcher.section_body(text, section)
        if body is None:
            return SectionResult.absent()
        try:
            return parse(body)
        except SectionParseError as error:
            logger.warning("Pattern parsing degraded for %s: %s", section.value, error)
        except Exception as error:  # noqa: BLE001
            logger.warning(
                "Unexpected pattern parsing error for %s: %s",
                section.value,
                error,
                exc_info=True,
            )
        return SectionResult.ambiguous(body)

    def _parse_weather(self, body: str) -> SectionResult[WeatherData]:
        high_match = _TEMP_HIGH.search(body)
        low_match = _TEMP_LOW.search(body)
        range_match = _TEMP_RANGE.search(body)

        temperature_high: int | None = None
        temperature_low: int | None = None
        if high_match is not None:
            temperature_high = _to_int(high_match.group(1))
        elif range_match is not None:
            temperature_high = max(_to_int(range_match.group(1)), _to_int(range_match.group(2)))
        if low_match is not None:
            temperature_low = _to_int(low_match.group(1))
        elif range_match is not None:
            temperature_low = min(_to_int(range_match.group(1)), _to_int(range_match.group(2)))

        for value in (temperature_high, temperature_low):
            if value is not None and not (
                MIN_PLAUSIBLE_TEMPERATURE <= value <= MAX_PLAUSIBLE_TEMPERATURE
            ):
                raise SectionParseError(
                    SectionName.WEATHER.value,
                    f"implausible temperature {value}",
                )

        conditions_match = _CONDITIONS.search(body)
        conditions = _normalize_space(conditions_match.group(1)) if conditions_match else ""

        confidence = weather_confidence(
            has_temperature=temperature_high is not None or temperature_low is not None,
            has_conditions=bool(conditions),
        )
        if confidence is Confidence.LOW:
            return SectionResult.ambiguous(body)

        notes = _remaining_text(
            body,
            [
                match.group(0)
                for match in (high_match, low_match, range_match, conditions_match)
                if match is not None
            ],
        )
        return SectionResult(
            data=WeatherData(
                conditions=conditions,
                temperature_high=temperature_high or 0,
                temperature_low=temperature_low or 0,
                notes=notes,
            ),
            confidence=confidence,
            needs_fallback=False,
            raw_text=body,
        )

    def _parse_workforce(self, body: str) -> SectionResult[WorkforceData]:
        crews: list[Crew] = []
        consumed: list[str] = []
        for line in body.splitlines():
            crew = _parse_crew_line(line)
            if crew is None:
                continue
            if crew.count > MAX_PLAUSIBLE_CREW_COUNT:
                raise SectionParseError(
                    SectionName.WORKFORCE.value,
                    f"implausible crew count {crew.count}",
                )
            crews.append(crew)
            consumed.append(line)

        total_match = _WORKFORCE_TOTAL.search(body)
        explicit_total = _to_int(total_match.group(1)) if total_match is not None else None
        if total_match is not None:
            consumed.append(total_match.group(0))

        confidence = workforce_confidence(
            crew_count=len(crews),
            has_total=explicit_total is not None,
        )
        if confidence is Confidence.LOW:
            return SectionResult.ambiguous(body)

        total_workers = (
            explicit_total if explicit_total is not None else sum(crew.count for crew in crews)
        )
        return SectionResult(
            data=WorkforceData(
                total_workers=total_workers,
                crews=crews,
                notes=_remaining_text(body, consumed),
                explicit_total=explicit_total is not None,
            ),
            confidence=confidence,
            needs_fallback=False,
            raw_text=body,
        )

    def _parse_work_areas(self, body: str) -> SectionResult[list[WorkArea]]:
        areas: list[WorkArea] = []
        seen: set[str] = set()
        for line in body.splitlines():
            area = _parse_area_line(line)
            if area is None or area.name in seen:
                continue
            seen.add(area.name)
            areas.append(area)

        if work_areas_confidence(area_count=len(areas)) is Confidence.LOW:
            return SectionResult.ambiguous(body)
        return SectionResult(
            data=areas,
            confidence=Confidence.HIGH,
            needs_fallback=False,
            raw_text=body,
        )

    def _parse_notes(self, body: str) -> SectionResult[str]:
        notes = body.strip()
        return SectionResult(
            data=notes,
            confidence=notes_confidence(notes, min_chars=self.notes_high_confidence_min_chars),
            needs_fallback=False,
            raw_text=body,
        )


def _parse_crew_line(line: str) -> Crew | None:
    table = _CREW_TABLE_ROW.match(line)
    if table is not None:
        subcontractor = table.group(1).strip()
        if _is_total_label(subcontractor):
            return None
        return Crew(
            trade=table.group(2).strip() or DEFAULT_CREW_TRADE,
            count=_to_int(table.group(3)),
            subcontractor=subcontractor,
        )
    free_text = _CREW_FREE_TEXT.match(line)
    if free_text is not None:
        subcontractor = free_text.group(1).strip()
        if _is_total_label(subcontractor):
            return None
        return Crew(
            trade=DEFAULT_CREW_TRADE,
            count=_to_int(free_text.group(2)),
            subcontractor=subcontractor,
        )
    return None


def _parse_area_line(line: str) -> WorkArea | None:
    free_text = _AREA_FREE_TEXT.match(line)
    if free_text is not None and "|" not in line:
        return WorkArea(
            name=_normalize_space(free_text.group(1)),
            status=_normalize_space(free_text.group(2)),
            notes=free_text.group(3).strip(_LEADING_SEPARATORS).strip(),
        )
    table = _AREA_TABLE_ROW.match(line)
    if table is None:
        return None
    name = _normalize_space(table.group(1))
    status = _normalize_space(table.group(2))
    if not _has_word(name) or not _has_word(status):
        return None
    if status.lower() in _TABLE_HEADER_STATUSES:
        return None
    return WorkArea(name=name, status=status, notes=(table.group(3) or "").strip())


def _is_total_label(value: str) -> bool:
    return value.lower().startswith("total")


def _has_word(value: str) -> bool:
    return any(char.isalnum() for char in value)


def _to_int(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        return 0


def _normalize_space(value: str) -> str:
    return " ".join(value.split())


def _remaining_text(text: str, matched: list[str]) -> str:
    """Body text left after removing each matched fragment once."""

    remaining = text
    for fragment in matched:
        if fragment:
            remaining = remaining.replace(fragment, "", 1)
    lines = [line.strip() for line in remaining.splitlines()]
    return "\n".join(line for line in lines if _has_word(line))
