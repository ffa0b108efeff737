"""Document storage and text rendering."""

from daily_report_extraction.documents.store import LocalDocumentStore, TextExtractor

__all__ = ["LocalDocumentStore", "TextExtractor"]
