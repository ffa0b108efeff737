"""Daily report extraction pipeline."""

from daily_report_extraction.extraction.conflicts import ConflictDetector
from daily_report_extraction.extraction.fallback import FallbackExtractor
from daily_report_extraction.extraction.patterns import PatternExtractor
from daily_report_extraction.extraction.pipeline import ExtractionPipeline

__all__ = ["ConflictDetector", "ExtractionPipeline", "FallbackExtractor", "PatternExtractor"]
