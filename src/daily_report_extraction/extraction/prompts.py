"""Prompt templates for section fallback and semantic conflict detection."""

from __future__ import annotations

import json
from typing import Any

from daily_report_extraction.extraction.models import SectionName

EXTRACTION_SYSTEM_PROMPT = (
    "You are a data extraction assistant. Extract structured data from construction "
    "daily report text. Return valid JSON only."
)

CONFLICT_SYSTEM_PROMPT = (
    "You are a data validation assistant. Analyze construction daily report data for "
    "inconsistencies. Be conservative - only flag clear conflicts, not minor variations."
)

SECTION_SCHEMAS: dict[SectionName, str] = {
    SectionName.WEATHER: """\
{
  "data": {
    "conditions": "string - sky/weather conditions",
    "temperatureHigh": number,
    "temperatureLow": number,
    "notes": "string - additional observations"
  }
}""",
    SectionName.WORKFORCE: """\
{
  "data": {
    "totalWorkers": number,
    "crews": [
      {"trade": "string", "count": number, "subcontractor": "string"}
    ],
    "notes": "string"
  }
}""",
    SectionName.WORK_AREAS: """\
{
  "data": [
    {"name": "string", "status": "string", "notes": "string"}
  ]
}""",
    SectionName.NOTES: """\
{
  "data": "string - the extracted notes content"
}""",
}

_CONFLICT_RESPONSE_SCHEMA = """\
{
  "conflicts": [
    {
      "type": "weather_inconsistency" | "work_area_conflict" | "cross_section_conflict" | "other",
      "message": "string describing the conflict",
      "sections": ["weather" | "workforce" | "workAreas" | "notes"],
      "severity": "info" | "warning" | "error"
    }
  ]
}"""


def build_section_prompt(section: SectionName, raw_text: str) -> str:
    return (
        f"Extract {section.value} data from this daily report text:\n"
        "\n"
        "---\n"
        f"{raw_text}\n"
        "---\n"
        "\n"
        "Return JSON matching this schema:\n"
        f"{SECTION_SCHEMAS[section]}\n"
        "\n"
        "If information is not present, use null for the data field."
    )


def build_conflict_prompt(payload: dict[str, Any]) -> str:
    return (
        "Analyze this extracted daily report data for inconsistencies or conflicts:\n"
        "\n"
        f"{json.dumps(payload, indent=2, sort_keys=True)}\n"
        "\n"
        "Check for:\n"
        "1. Weather notes contradicting conditions "
        '(e.g., notes mention rain but conditions say "Clear")\n'
        "2. Work area statuses that conflict with each other\n"
        "3. Any other logical inconsistencies across sections\n"
        "\n"
        "Return JSON with this structure:\n"
        f"{_CONFLICT_RESPONSE_SCHEMA}\n"
        "\n"
        'If no conflicts found, return: {"conflicts": []}'
    )
