"""Language-model transports used by fallback extraction and conflict detection."""

from daily_report_extraction.llm.base import CompletionClient
from daily_report_extraction.llm.cli_client import CliCompletionClient
from daily_report_extraction.llm.factory import build_completion_client
from daily_report_extraction.llm.http_client import HttpCompletionClient

__all__ = [
    "CliCompletionClient",
    "CompletionClient",
    "HttpCompletionClient",
    "build_completion_client",
]
