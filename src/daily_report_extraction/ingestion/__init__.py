"""Report submission: store the document, record it, enqueue it."""

from daily_report_extraction.ingestion.service import IngestionService, SubmittedReport

__all__ = ["IngestionService", "SubmittedReport"]
