"""Best-effort recovery of structured data from language-model responses."""

from __future__ import annotations

import json
import math
import re
from typing import Any

from daily_report_extraction.extraction.models import (
    Crew,
    SectionName,
    Severity,
    ValidationWarning,
    WarningType,
    WeatherData,
    WorkArea,
    WorkforceData,
)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)
_KNOWN_SECTIONS = {name.value for name in SectionName}


def parse_json_object(text: str) -> dict[str, Any] | None:
    """Parse a JSON object from raw text, a fenced block, or the outermost braces."""

    stripped = text.strip()
    if not stripped:
        return None

    direct = _try_load_dict(stripped)
    if direct is not None:
        return direct

    fenced = _FENCED_JSON.search(stripped)
    if fenced is not None:
        payload = _try_load_dict(fenced.group(1))
        if payload is not None:
            return payload

    start = stripped.find("{")
    end = stripped.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return _try_load_dict(stripped[start : end + 1])


def _try_load_dict(raw: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def coerce_section_data(section: SectionName, raw: object) -> object | None:
    """Map a model's ``data`` value onto the section's schema, or ``None`` if it does not fit."""

    if section is SectionName.WEATHER:
        return _coerce_weather(raw)
    if section is SectionName.WORKFORCE:
        return _coerce_workforce(raw)
    if section is SectionName.WORK_AREAS:
        return _coerce_work_areas(raw)
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return None


def _coerce_weather(raw: object) -> WeatherData | None:
    if not isinstance(raw, dict):
        return None
    conditions = _as_text(raw.get("conditions"))
    high = _as_int(raw.get("temperatureHigh"))
    low = _as_int(raw.get("temperatureLow"))
    if not conditions and high is None and low is None:
        return None
    return WeatherData(
        conditions=conditions,
        temperature_high=high or 0,
        temperature_low=low or 0,
        notes=_as_text(raw.get("notes")),
    )


def _coerce_workforce(raw: object) -> WorkforceData | None:
    if not isinstance(raw, dict):
        return None
    crews: list[Crew] = []
    raw_crews = raw.get("crews")
    if isinstance(raw_crews, list):
        for item in raw_crews:
            if not isinstance(item, dict):
                continue
            count = _as_int(item.get("count"))
            if count is None:
                continue
            crews.append(
                Crew(
                    trade=_as_text(item.get("trade")) or "General",
                    count=count,
                    subcontractor=_as_text(item.get("subcontractor")),
                ),
            )
    total = _as_int(raw.get("totalWorkers"))
    if total is None and not crews:
        return None
    return WorkforceData(
        total_workers=total if total is not None else sum(crew.count for crew in crews),
        crews=crews,
        notes=_as_text(raw.get("notes")),
        explicit_total=total is not None,
    )


def _coerce_work_areas(raw: object) -> list[WorkArea] | None:
    if not isinstance(raw, list):
        return None
    areas: list[WorkArea] = []
    seen: set[str] = set()
    for item in raw:
        if not isinstance(item, dict):
            continue
        name = _as_text(item.get("name"))
        status = _as_text(item.get("status"))
        if not name or not status or name in seen:
            continue
        seen.add(name)
        areas.append(WorkArea(name=name, status=status, notes=_as_text(item.get("notes"))))
    return areas or None


def coerce_conflicts(payload: dict[str, Any]) -> list[ValidationWarning]:
    """Turn a ``{"conflicts": [...]}`` payload into warnings, skipping malformed entries."""

    raw_conflicts = payload.get("conflicts")
    if not isinstance(raw_conflicts, list):
        return []

    known_types = {member.value for member in WarningType}
    warnings: list[ValidationWarning] = []
    for item in raw_conflicts:
        if not isinstance(item, dict):
            continue
        message = _as_text(item.get("message"))
        if not message:
            continue
        conflict_type = _as_text(item.get("type"))
        if conflict_type not in known_types:
            conflict_type = WarningType.OTHER.value
        raw_sections = item.get("sections")
        sections: tuple[str, ...] = ()
        if isinstance(raw_sections, list):
            known = (
                value
                for value in raw_sections
                if isinstance(value, str) and value in _KNOWN_SECTIONS
            )
            sections = tuple(dict.fromkeys(known))
        warnings.append(
            ValidationWarning(
                type=conflict_type,
                message=message,
                sections=sections,
                severity=_as_severity(item.get("severity")),
            ),
        )
    return warnings


def _as_severity(value: object) -> Severity:
    if isinstance(value, str):
        try:
            return Severity(value.strip().lower())
        except ValueError:
            pass
    return Severity.WARNING


def _as_text(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return round(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None
