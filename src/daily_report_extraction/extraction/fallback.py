"""Language-model fallback for sections the pattern extractor could not resolve."""

from __future__ import annotations

import logging
from typing import Any

from daily_report_extraction.errors import TransportError
from daily_report_extraction.extraction.model_output import coerce_section_data, parse_json_object
from daily_report_extraction.extraction.models import Confidence, SectionName, SectionResult
from daily_report_extraction.extraction.prompts import (
    EXTRACTION_SYSTEM_PROMPT,
    build_section_prompt,
)
from daily_report_extraction.llm.base import CompletionClient

logger = logging.getLogger(__name__)

FALLBACK_ORDER: tuple[SectionName, ...] = (
    SectionName.WEATHER,
    SectionName.WORKFORCE,
    SectionName.WORK_AREAS,
)


class FallbackExtractor:
    """One model call per ambiguous section; the outcome is terminal."""

    def __init__(self, client: CompletionClient) -> None:
        self.client = client

    def extract_section(self, section: SectionName, raw_text: str) -> SectionResult[Any]:
        """Extract ``section`` from ``raw_text`` via the model.

        Returns MEDIUM confidence on a usable response and an empty LOW result
        otherwise. Never raises for transport or parse failures, and never asks
        for another fallback.
        """

        if section not in FALLBACK_ORDER:
            raise ValueError(f"Section {section.value!r} does not support model fallback.")

        logger.info("Model fallback extraction for section: %s", section.value)
        try:
            response = self.client.complete(
                build_section_prompt(section, raw_text),
                system_prompt=EXTRACTION_SYSTEM_PROMPT,
            )
        except TransportError as error:
            logger.error("Model fallback failed for %s: %s", section.value, error)
            return _failed(raw_text)

        payload = parse_json_object(response)
        if payload is None:
            logger.warning("Model fallback for %s returned no parseable JSON", section.value)
            return _failed(raw_text)

        data = coerce_section_data(section, payload.get("data"))
        if data is None:
            logger.info("Model fallback for %s found no data", section.value)
            return _failed(raw_text)

        return SectionResult(
            data=data,
            confidence=Confidence.MEDIUM,
            needs_fallback=False,
            raw_text=raw_text,
        )


def _failed(raw_text: str) -> SectionResult[Any]:
    return SectionResult(
        data=None,
        confidence=Confidence.LOW,
        needs_fallback=False,
        raw_text=raw_text,
    )
