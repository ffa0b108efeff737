"""Runtime configuration for the extraction worker and its collaborators."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

SUPPORTED_LLM_BACKENDS: tuple[str, ...] = ("http", "cli")
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(slots=True)
class StorageSettings:
    """Local document store settings."""

    root: Path = Path("uploads")


@dataclass(slots=True)
class QueueSettings:
    """Processing queue settings."""

    name: str = "daily-report-processing"
    poll_interval_seconds: float = 5.0
    visibility_timeout_seconds: int = 300


@dataclass(slots=True)
class LlmSettings:
    """Language-model transport settings."""

    backend: str = "http"
    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-4"
    temperature: float = 0.1
    timeout_seconds: float = 60.0
    max_retries: int = 2
    command_template: str = ""


@dataclass(slots=True)
class ExtractionSettings:
    """Pattern and conflict detection tuning."""

    notes_high_confidence_min_chars: int = 10
    semantic_conflicts_enabled: bool = True


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    db_path: Path = Path(".daily_report.db")
    log_level: str = "INFO"
    sqlite_busy_timeout_ms: int = 5000
    storage: StorageSettings = field(default_factory=StorageSettings)
    queue: QueueSettings = field(default_factory=QueueSettings)
    llm: LlmSettings = field(default_factory=LlmSettings)
    extraction: ExtractionSettings = field(default_factory=ExtractionSettings)

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        return cls(
            db_path=db_path or Path(os.getenv("DAILY_REPORT_DB_PATH", ".daily_report.db")),
            log_level=os.getenv("DAILY_REPORT_LOG_LEVEL", "INFO").strip().upper(),
            sqlite_busy_timeout_ms=int(os.getenv("DAILY_REPORT_SQLITE_BUSY_TIMEOUT_MS", "5000")),
            storage=StorageSettings(
                root=Path(os.getenv("DAILY_REPORT_STORAGE_ROOT", "uploads")),
            ),
            queue=QueueSettings(
                name=os.getenv("DAILY_REPORT_QUEUE_NAME", "daily-report-processing"),
                poll_interval_seconds=float(
                    os.getenv("DAILY_REPORT_QUEUE_POLL_INTERVAL_SECONDS", "5.0"),
                ),
                visibility_timeout_seconds=int(
                    os.getenv("DAILY_REPORT_QUEUE_VISIBILITY_TIMEOUT_SECONDS", "300"),
                ),
            ),
            llm=LlmSettings(
                backend=os.getenv("DAILY_REPORT_LLM_BACKEND", "http").strip().lower(),
                base_url=os.getenv("DAILY_REPORT_LLM_BASE_URL", "https://api.openai.com/v1"),
                api_key=os.getenv("DAILY_REPORT_LLM_API_KEY", os.getenv("LLM_API_KEY", "")),
                model=os.getenv("DAILY_REPORT_LLM_MODEL", os.getenv("LLM_MODEL", "gpt-4")),
                temperature=float(os.getenv("DAILY_REPORT_LLM_TEMPERATURE", "0.1")),
                timeout_seconds=float(os.getenv("DAILY_REPORT_LLM_TIMEOUT_SECONDS", "60")),
                max_retries=int(os.getenv("DAILY_REPORT_LLM_MAX_RETRIES", "2")),
                command_template=os.getenv("DAILY_REPORT_LLM_COMMAND_TEMPLATE", ""),
            ),
            extraction=ExtractionSettings(
                notes_high_confidence_min_chars=int(
                    os.getenv("DAILY_REPORT_NOTES_HIGH_CONFIDENCE_MIN_CHARS", "10"),
                ),
                semantic_conflicts_enabled=_env_bool(
                    "DAILY_REPORT_SEMANTIC_CONFLICTS_ENABLED",
                    default=True,
                ),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error if worker settings are unusable."""

        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"Invalid DAILY_REPORT_LOG_LEVEL: {self.log_level!r}")
        if self.sqlite_busy_timeout_ms <= 0:
            raise ValueError("DAILY_REPORT_SQLITE_BUSY_TIMEOUT_MS must be > 0.")
        if self.queue.poll_interval_seconds <= 0:
            raise ValueError("DAILY_REPORT_QUEUE_POLL_INTERVAL_SECONDS must be > 0.")
        if self.queue.visibility_timeout_seconds <= 0:
            raise ValueError("DAILY_REPORT_QUEUE_VISIBILITY_TIMEOUT_SECONDS must be > 0.")
        if self.extraction.notes_high_confidence_min_chars < 0:
            raise ValueError("DAILY_REPORT_NOTES_HIGH_CONFIDENCE_MIN_CHARS must be >= 0.")
        self.validate_llm()

    def validate_llm(self) -> None:
        """Raise configuration error if the selected model transport is incomplete."""

        if self.llm.backend not in SUPPORTED_LLM_BACKENDS:
            raise ValueError(
                f"Unsupported DAILY_REPORT_LLM_BACKEND: {self.llm.backend!r}. "
                f"Expected one of: {', '.join(SUPPORTED_LLM_BACKENDS)}.",
            )
        if self.llm.timeout_seconds <= 0:
            raise ValueError("DAILY_REPORT_LLM_TIMEOUT_SECONDS must be > 0.")
        if self.llm.max_retries < 0:
            raise ValueError("DAILY_REPORT_LLM_MAX_RETRIES must be >= 0.")
        if self.llm.backend == "http":
            _validate_base_url(self.llm.base_url)
        if self.llm.backend == "cli" and "{prompt}" not in self.llm.command_template:
            raise ValueError(
                "DAILY_REPORT_LLM_COMMAND_TEMPLATE must include {prompt} "
                "when DAILY_REPORT_LLM_BACKEND=cli.",
            )


def _validate_base_url(value: str) -> None:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(
            "Invalid DAILY_REPORT_LLM_BASE_URL: "
            f"{value!r}. Expected an absolute URL with http:// or https:// scheme.",
        )


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
