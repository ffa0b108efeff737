from __future__ import annotations

import allure

from daily_report_extraction.extraction.models import (
    Confidence,
    Crew,
    SectionName,
    WorkArea,
)
from daily_report_extraction.extraction.patterns import PatternExtractor

pytestmark = [
    allure.epic("Extraction"),
    allure.feature("Pattern Extraction"),
]


def test_full_report_extracts_every_section_with_high_confidence(sample_report: str) -> None:
    result = PatternExtractor().extract(sample_report)

    assert result.weather.confidence is Confidence.HIGH
    assert result.weather.data is not None
    assert result.weather.data.temperature_high == 75
    assert result.weather.data.temperature_low == 55
    assert result.weather.data.conditions == "Partly Cloudy"

    assert result.workforce.confidence is Confidence.HIGH
    assert result.workforce.data is not None
    assert result.workforce.data.total_workers == 10
    assert result.workforce.data.crews == [
        Crew(trade="Electrician", count=6, subcontractor="ABC Electric"),
        Crew(trade="Plumber", count=4, subcontractor="XYZ Plumbing"),
    ]

    assert result.work_areas.confidence is Confidence.HIGH
    assert result.work_areas.data == [
        WorkArea(name="Level 1", status="In Progress", notes="framing inspection passed"),
        WorkArea(name="Level 2", status="Completed", notes=""),
        WorkArea(name="Parking Deck", status="Delayed", notes="waiting on rebar"),
    ]

    assert result.notes.confidence is Confidence.HIGH
    assert result.notes.data == "Concrete delivery rescheduled to Thursday morning."
    assert result.sections_needing_fallback() == []


def test_extraction_is_deterministic(sample_report: str) -> None:
    extractor = PatternExtractor()

    assert extractor.extract(sample_report) == extractor.extract(sample_report)


def test_fallback_flag_implies_low_confidence(
    sample_report: str,
    prose_weather_report: str,
) -> None:
    extractor = PatternExtractor()
    for text in (sample_report, prose_weather_report, "Weather:\nHigh: 500F", ""):
        for section in extractor.extract(text).by_name().values():
            if section.needs_fallback:
                assert section.confidence is Confidence.LOW
                assert section.data is None
                assert section.raw_text


def test_absent_section_is_low_without_fallback() -> None:
    result = PatternExtractor().extract("Notes:\nQuiet day on site overall.")

    for section in (result.weather, result.workforce, result.work_areas):
        assert section.data is None
        assert section.confidence is Confidence.LOW
        assert section.needs_fallback is False
        assert section.raw_text is None


def test_prose_weather_is_ambiguous(prose_weather_report: str) -> None:
    result = PatternExtractor().extract(prose_weather_report)

    assert result.weather.confidence is Confidence.LOW
    assert result.weather.needs_fallback is True
    assert result.weather.raw_text == "It was a nice day with some clouds in the morning."
    assert result.sections_needing_fallback() == [SectionName.WEATHER]


def test_temperature_range_without_conditions_is_medium() -> None:
    result = PatternExtractor().extract("Weather:\nTemp 45-62°F, overcast afternoon")

    assert result.weather.confidence is Confidence.MEDIUM
    assert result.weather.needs_fallback is False
    assert result.weather.data is not None
    assert result.weather.data.temperature_high == 62
    assert result.weather.data.temperature_low == 45
    assert result.weather.data.conditions == ""


def test_conditions_without_temperature_default_to_zero() -> None:
    result = PatternExtractor().extract("Weather:\nSky: Overcast")

    assert result.weather.confidence is Confidence.MEDIUM
    assert result.weather.data is not None
    assert result.weather.data.conditions == "Overcast"
    assert result.weather.data.temperature_high == 0
    assert result.weather.data.temperature_low == 0


def test_implausible_temperature_degrades_to_fallback() -> None:
    result = PatternExtractor().extract("Weather:\nHigh: 500F\nConditions: Sunny")

    assert result.weather.confidence is Confidence.LOW
    assert result.weather.needs_fallback is True
    assert result.weather.raw_text == "High: 500F\nConditions: Sunny"


def test_missing_total_defaults_to_crew_sum() -> None:
    text = "Manpower:\nABC Electric | Electrician | 5\nXYZ Plumbing | Plumber | 3\n"

    result = PatternExtractor().extract(text)

    assert result.workforce.data is not None
    assert result.workforce.data.total_workers == 8
    assert result.workforce.confidence is Confidence.HIGH


def test_free_text_crews_use_general_trade() -> None:
    text = "Workforce:\nCarpenters: 4 workers\nLaborers - 3 men\nTotal: 9"

    result = PatternExtractor().extract(text)

    assert result.workforce.data is not None
    assert result.workforce.data.crews == [
        Crew(trade="General", count=4, subcontractor="Carpenters"),
        Crew(trade="General", count=3, subcontractor="Laborers"),
    ]
    assert result.workforce.data.total_workers == 9


def test_total_only_workforce_is_medium() -> None:
    result = PatternExtractor().extract("Manpower:\nTotal workers: 12")

    assert result.workforce.confidence is Confidence.MEDIUM
    assert result.workforce.data is not None
    assert result.workforce.data.total_workers == 12
    assert result.workforce.data.crews == []


def test_work_areas_skip_table_header_and_duplicates() -> None:
    text = (
        "Work Areas:\n"
        "Area | Status | Notes\n"
        "---|---|---\n"
        "Level 3 | In Progress | drywall\n"
        "Level 3 | Completed | duplicate row\n"
    )

    result = PatternExtractor().extract(text)

    assert result.work_areas.data == [
        WorkArea(name="Level 3", status="In Progress", notes="drywall"),
    ]


def test_unparseable_work_areas_need_fallback() -> None:
    result = PatternExtractor().extract("Work Areas:\nCrews moved around the east side.")

    assert result.work_areas.needs_fallback is True
    assert result.work_areas.confidence is Confidence.LOW


def test_short_notes_are_medium_confidence() -> None:
    result = PatternExtractor().extract("Notes:\nAll good.")

    assert result.notes.data == "All good."
    assert result.notes.confidence is Confidence.MEDIUM
    assert result.notes.needs_fallback is False


def test_notes_threshold_is_configurable() -> None:
    extractor = PatternExtractor(notes_high_confidence_min_chars=3)

    result = extractor.extract("Notes:\nAll good.")

    assert result.notes.confidence is Confidence.HIGH


def test_weather_parse_error_does_not_affect_other_sections(sample_report: str) -> None:
    text = sample_report.replace("High: 75°F", "High: 500°F")

    result = PatternExtractor().extract(text)

    assert result.weather.confidence is Confidence.LOW
    assert result.weather.needs_fallback is True
    assert result.weather.data is None
    assert result.workforce.confidence is Confidence.HIGH
    assert result.workforce.data is not None
    assert result.workforce.data.total_workers == 10
    assert result.workforce.data.crew_sum == 10
    assert result.work_areas.confidence is Confidence.HIGH
    assert result.work_areas.data is not None
    assert [area.name for area in result.work_areas.data] == [
        "Level 1",
        "Level 2",
        "Parking Deck",
    ]
    assert result.notes.confidence is Confidence.HIGH
    assert result.notes.data == "Concrete delivery rescheduled to Thursday morning."
    assert result.sections_needing_fallback() == [SectionName.WEATHER]
