"""End-to-end extraction of one daily report."""

from __future__ import annotations

import logging
import time
from typing import Any

from daily_report_extraction.documents.store import TextExtractor
from daily_report_extraction.extraction.confidence import overall_confidence
from daily_report_extraction.extraction.conflicts import ConflictDetector
from daily_report_extraction.extraction.fallback import FALLBACK_ORDER, FallbackExtractor
from daily_report_extraction.extraction.models import (
    ExtractedData,
    ExtractionResult,
    SectionName,
    SectionResult,
    StageTimings,
    StructuredExtraction,
)
from daily_report_extraction.extraction.patterns import PatternExtractor
from daily_report_extraction.messaging.models import JobMessage

logger = logging.getLogger(__name__)


class ExtractionPipeline:
    """Text -> patterns -> model fallback -> conflict detection -> confidence.

    Any exception raised while reading the document, extracting or detecting
    conflicts propagates to the caller. The pipeline persists nothing.
    """

    def __init__(
        self,
        *,
        text_extractor: TextExtractor,
        pattern_extractor: PatternExtractor,
        fallback_extractor: FallbackExtractor | None,
        conflict_detector: ConflictDetector,
    ) -> None:
        self.text_extractor = text_extractor
        self.pattern_extractor = pattern_extractor
        self.fallback_extractor = fallback_extractor
        self.conflict_detector = conflict_detector

    def run(self, job: JobMessage) -> ExtractionResult:
        timings = StageTimings()
        started = time.perf_counter()

        stage_start = time.perf_counter()
        text = self.text_extractor.extract_text(job.locator)
        timings.text_extraction_ms = _elapsed_ms(stage_start)

        stage_start = time.perf_counter()
        structured = self.pattern_extractor.extract(text)
        timings.pattern_extraction_ms = _elapsed_ms(stage_start)

        stage_start = time.perf_counter()
        fallback_sections: list[SectionName] = []
        resolved = StructuredExtraction(
            weather=self._resolve_section(
                SectionName.WEATHER,
                structured.weather,
                fallback_sections,
            ),
            workforce=self._resolve_section(
                SectionName.WORKFORCE,
                structured.workforce,
                fallback_sections,
            ),
            work_areas=self._resolve_section(
                SectionName.WORK_AREAS,
                structured.work_areas,
                fallback_sections,
            ),
            notes=self._resolve_section(SectionName.NOTES, structured.notes, fallback_sections),
        )
        timings.fallback_ms = _elapsed_ms(stage_start)

        data = ExtractedData(
            weather=resolved.weather.data,
            workforce=resolved.workforce.data,
            work_areas=resolved.work_areas.data,
            notes=resolved.notes.data,
        )
        if data.is_empty():
            logger.warning("Job %s: no report sections found in %s", job.job_id, job.locator)

        stage_start = time.perf_counter()
        warnings = self.conflict_detector.detect(data)
        timings.conflict_detection_ms = _elapsed_ms(stage_start)

        confidence = overall_confidence(
            section.confidence for section in resolved.by_name().values()
        )
        timings.total_ms = _elapsed_ms(started)

        logger.info(
            "Job %s extracted: confidence=%s warnings=%d fallback=%s total=%.1fms",
            job.job_id,
            confidence.value,
            len(warnings),
            ",".join(name.value for name in fallback_sections) or "-",
            timings.total_ms,
        )
        return ExtractionResult(
            data=data,
            sections=resolved,
            warnings=warnings,
            fallback_sections=fallback_sections,
            overall_confidence=confidence,
            timings=timings,
        )

    def _resolve_section(
        self,
        section: SectionName,
        result: SectionResult[Any],
        fallback_sections: list[SectionName],
    ) -> SectionResult[Any]:
        if not result.needs_fallback or not result.raw_text:
            return result
        if self.fallback_extractor is None or section not in FALLBACK_ORDER:
            logger.info("Section %s stays unresolved without model fallback", section.value)
            return SectionResult(
                data=result.data,
                confidence=result.confidence,
                needs_fallback=False,
                raw_text=result.raw_text,
            )
        fallback_sections.append(section)
        return self.fallback_extractor.extract_section(section, result.raw_text)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0
