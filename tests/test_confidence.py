from __future__ import annotations

import allure
import pytest

from daily_report_extraction.extraction.confidence import (
    notes_confidence,
    overall_confidence,
    weather_confidence,
    work_areas_confidence,
    workforce_confidence,
)
from daily_report_extraction.extraction.models import Confidence, SectionResult

pytestmark = [
    allure.epic("Extraction"),
    allure.feature("Confidence"),
]

H, M, L = Confidence.HIGH, Confidence.MEDIUM, Confidence.LOW


@pytest.mark.parametrize(
    ("confidences", "expected"),
    [
        ([H, H, H, M], H),
        ([L, L, M, H], L),
        ([M, M, H, L], M),
        ([H, H, H, H], H),
        ([L, H, H, H], H),
        ([M, M, M, M], M),
    ],
)
def test_overall_confidence(confidences: list[Confidence], expected: Confidence) -> None:
    assert overall_confidence(confidences) is expected


def test_weather_confidence_levels() -> None:
    assert weather_confidence(has_temperature=True, has_conditions=True) is H
    assert weather_confidence(has_temperature=True, has_conditions=False) is M
    assert weather_confidence(has_temperature=False, has_conditions=True) is M
    assert weather_confidence(has_temperature=False, has_conditions=False) is L


def test_workforce_and_area_confidence_levels() -> None:
    assert workforce_confidence(crew_count=2, has_total=False) is H
    assert workforce_confidence(crew_count=0, has_total=True) is M
    assert workforce_confidence(crew_count=0, has_total=False) is L
    assert work_areas_confidence(area_count=1) is H
    assert work_areas_confidence(area_count=0) is L


def test_notes_confidence_uses_strict_threshold() -> None:
    assert notes_confidence("x" * 11, min_chars=10) is H
    assert notes_confidence("x" * 10, min_chars=10) is M


def test_section_needing_fallback_must_be_low() -> None:
    with pytest.raises(ValueError, match="must be LOW"):
        SectionResult(data=None, confidence=Confidence.MEDIUM, needs_fallback=True)

    ambiguous = SectionResult.ambiguous("raw")
    assert ambiguous.confidence is L
    assert ambiguous.needs_fallback is True
