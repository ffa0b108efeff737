"""Build the configured completion client."""

from __future__ import annotations

from daily_report_extraction.config import LlmSettings
from daily_report_extraction.llm.base import CompletionClient
from daily_report_extraction.llm.cli_client import CliCompletionClient
from daily_report_extraction.llm.http_client import HttpCompletionClient


def build_completion_client(settings: LlmSettings) -> CompletionClient:
    if settings.backend == "cli":
        return CliCompletionClient(
            command_template=settings.command_template,
            model=settings.model,
            timeout_seconds=settings.timeout_seconds,
        )
    if settings.backend == "http":
        return HttpCompletionClient(
            api_key=settings.api_key,
            model=settings.model,
            base_url=settings.base_url,
            temperature=settings.temperature,
            timeout_seconds=settings.timeout_seconds,
            max_retries=settings.max_retries,
        )
    raise ValueError(f"Unsupported LLM backend: {settings.backend!r}")
