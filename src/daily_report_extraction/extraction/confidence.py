"""Confidence rules for individual sections and for a whole report."""

from __future__ import annotations

from collections.abc import Iterable

from daily_report_extraction.extraction.models import Confidence

OVERALL_LOW_MIN_COUNT = 2
OVERALL_HIGH_MIN_COUNT = 3


def weather_confidence(*, has_temperature: bool, has_conditions: bool) -> Confidence:
    if has_temperature and has_conditions:
        return Confidence.HIGH
    if has_temperature or has_conditions:
        return Confidence.MEDIUM
    return Confidence.LOW


def workforce_confidence(*, crew_count: int, has_total: bool) -> Confidence:
    if crew_count > 0:
        return Confidence.HIGH
    if has_total:
        return Confidence.MEDIUM
    return Confidence.LOW


def work_areas_confidence(*, area_count: int) -> Confidence:
    return Confidence.HIGH if area_count > 0 else Confidence.LOW


def notes_confidence(text: str, *, min_chars: int) -> Confidence:
    return Confidence.HIGH if len(text) > min_chars else Confidence.MEDIUM


def overall_confidence(confidences: Iterable[Confidence]) -> Confidence:
    """Aggregate section confidences.

    Two or more LOW sections make the report LOW; otherwise three or more HIGH
    sections make it HIGH; anything else is MEDIUM.
    """

    values = list(confidences)
    low = sum(1 for value in values if value is Confidence.LOW)
    high = sum(1 for value in values if value is Confidence.HIGH)
    if low >= OVERALL_LOW_MIN_COUNT:
        return Confidence.LOW
    if high >= OVERALL_HIGH_MIN_COUNT:
        return Confidence.HIGH
    return Confidence.MEDIUM
