from __future__ import annotations

import allure
import pytest

from daily_report_extraction.errors import TransportError
from daily_report_extraction.extraction.fallback import FallbackExtractor
from daily_report_extraction.extraction.models import Confidence, SectionName, WeatherData
from daily_report_extraction.extraction.prompts import EXTRACTION_SYSTEM_PROMPT

pytestmark = [
    allure.epic("Extraction"),
    allure.feature("Model Fallback"),
]

RAW_WEATHER = "It was a nice day with some clouds in the morning."


def test_usable_response_is_medium_confidence(fake_client_factory) -> None:
    client = fake_client_factory(
        ['{"data": {"conditions": "Partly Cloudy", "temperatureHigh": 70, "temperatureLow": 50}}'],
    )

    result = FallbackExtractor(client).extract_section(SectionName.WEATHER, RAW_WEATHER)

    assert result.confidence is Confidence.MEDIUM
    assert result.needs_fallback is False
    assert result.data == WeatherData(
        conditions="Partly Cloudy",
        temperature_high=70,
        temperature_low=50,
        notes="",
    )
    assert len(client.calls) == 1
    prompt, system_prompt = client.calls[0]
    assert RAW_WEATHER in prompt
    assert "Extract weather data" in prompt
    assert system_prompt == EXTRACTION_SYSTEM_PROMPT


@pytest.mark.parametrize(
    "response",
    [
        TransportError("boom", transient=True),
        "I could not find anything useful",
        '{"data": null}',
    ],
)
def test_unusable_outcome_is_terminal_low(fake_client_factory, response) -> None:
    client = fake_client_factory([response])

    result = FallbackExtractor(client).extract_section(SectionName.WORKFORCE, "crew talk")

    assert result.data is None
    assert result.confidence is Confidence.LOW
    assert result.needs_fallback is False
    assert result.raw_text == "crew talk"
    assert len(client.calls) == 1


def test_notes_do_not_support_fallback(fake_client_factory) -> None:
    client = fake_client_factory()

    with pytest.raises(ValueError, match="does not support model fallback"):
        FallbackExtractor(client).extract_section(SectionName.NOTES, "text")
    assert client.calls == []
