"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from daily_report_extraction.errors import TransportError

SAMPLE_REPORT = """DAILY REPORT - Riverside Tower
Date: 2026-10-16

Weather:
High: 75°F / Low: 55°F
Conditions: Partly Cloudy

Manpower:
ABC Electric | Electrician | 6
XYZ Plumbing | Plumber | 4
Total Workers: 10

Work Areas:
Level 1 - In Progress - framing inspection passed
Level 2: Completed
Parking Deck | Delayed | waiting on rebar

Notes:
Concrete delivery rescheduled to Thursday morning.
"""

PROSE_WEATHER_REPORT = """Weather:
It was a nice day with some clouds in the morning.

Notes:
Site cleanup finished before the afternoon walk.
"""


class FakeCompletionClient:
    """Scripted completion client recording every prompt."""

    def __init__(self, responses: list[str | Exception] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[tuple[str, str | None]] = []

    def complete(self, prompt: str, *, system_prompt: str | None = None) -> str:
        self.calls.append((prompt, system_prompt))
        if not self.responses:
            return '{"conflicts": []}'
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        return None


class FakeTextExtractor:
    def __init__(self, documents: dict[str, str]) -> None:
        self.documents = documents
        self.requested: list[str] = []

    def extract_text(self, locator: str) -> str:
        self.requested.append(locator)
        if locator not in self.documents:
            raise TransportError(f"Document not found: {locator}", transient=False)
        return self.documents[locator]


@pytest.fixture()
def fake_client_factory() -> Callable[..., FakeCompletionClient]:
    return FakeCompletionClient


@pytest.fixture()
def text_extractor_factory() -> Callable[[dict[str, str]], FakeTextExtractor]:
    return FakeTextExtractor


@pytest.fixture()
def sample_report() -> str:
    return SAMPLE_REPORT


@pytest.fixture()
def prose_weather_report() -> str:
    return PROSE_WEATHER_REPORT
