"""Section header detection and body splitting."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from daily_report_extraction.extraction.models import SectionName

DEFAULT_HEADER_SYNONYMS: dict[SectionName, tuple[str, ...]] = {
    SectionName.WEATHER: (r"observed\s+weather", r"weather\s+conditions", r"weather"),
    SectionName.WORKFORCE: (
        r"daily\s+construction\s+report",
        r"workforce",
        r"manpower",
        r"labor",
    ),
    SectionName.WORK_AREAS: (r"work\s*areas?", r"site\s*areas?", r"locations?"),
    SectionName.NOTES: (r"notes?", r"observations?", r"comments?", r"remarks?"),
}


def compile_header_pattern(synonyms: Iterable[str]) -> re.Pattern[str]:
    """Build a line-anchored, case-insensitive header pattern.

    A header is one of the synonyms at the start of a line, followed either by
    a colon (content may continue on the same line), by up to three extra words
    and a colon ending the line ("Observed Weather Conditions:"), or by the end
    of the line.
    """

    alternatives = "|".join(synonyms)
    return re.compile(
        rf"(?:^|\n)[ \t]*(?:{alternatives})"
        r"(?:[ \t]*:|(?:[ \t]+[A-Za-z]+){1,3}[ \t]*:[ \t]*(?=\n|$)|[ \t]*(?=\n|$))",
        re.IGNORECASE,
    )


@dataclass(frozen=True, slots=True)
class HeaderMatch:
    section: SectionName
    start: int
    end: int


class BoundaryMatcher:
    """Finds section headers and the text between them."""

    def __init__(self, patterns: Mapping[SectionName, re.Pattern[str]]) -> None:
        if not patterns:
            raise ValueError("At least one section header pattern is required.")
        self._patterns = dict(patterns)

    @classmethod
    def from_synonyms(
        cls,
        synonyms: Mapping[SectionName, Iterable[str]] | None = None,
    ) -> BoundaryMatcher:
        source = DEFAULT_HEADER_SYNONYMS if synonyms is None else synonyms
        return cls({name: compile_header_pattern(values) for name, values in source.items()})

    @property
    def sections(self) -> tuple[SectionName, ...]:
        return tuple(self._patterns)

    def find_header(self, text: str, section: SectionName, start: int = 0) -> HeaderMatch | None:
        """First header of ``section`` at or after ``start``."""

        pattern = self._patterns.get(section)
        if pattern is None:
            return None
        match = pattern.search(text, start)
        if match is None:
            return None
        return HeaderMatch(section=section, start=match.start(), end=match.end())

    def find_earliest(self, text: str, start: int) -> HeaderMatch | None:
        """Earliest header of any section at or after ``start``.

        Ties resolve to the section registered first.
        """

        earliest: HeaderMatch | None = None
        for section in self._patterns:
            found = self.find_header(text, section, start)
            if found is None:
                continue
            if earliest is None or found.start < earliest.start:
                earliest = found
        return earliest

    def section_body(self, text: str, section: SectionName) -> str | None:
        """Text between the section's header and the next header of any section.

        Returns ``None`` when the header is missing or the body is blank.
        """

        header = self.find_header(text, section)
        if header is None:
            return None
        following = self.find_earliest(text, header.end)
        end = following.start if following is not None else len(text)
        body = text[header.end : end].strip()
        return body or None
