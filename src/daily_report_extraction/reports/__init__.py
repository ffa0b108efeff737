"""Daily report records and their processing status."""

from daily_report_extraction.reports.models import ALLOWED_TRANSITIONS, ReportStatus, ReportView
from daily_report_extraction.reports.repository import ReportRepository

__all__ = ["ALLOWED_TRANSITIONS", "ReportRepository", "ReportStatus", "ReportView"]
