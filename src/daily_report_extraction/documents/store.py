"""Filesystem document store with plain-text rendering of stored reports."""

from __future__ import annotations

import logging
import shutil
import uuid
from datetime import date
from pathlib import Path
from typing import Protocol

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from daily_report_extraction.errors import TransportError

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = frozenset({".txt", ".text", ".md"})
PDF_SUFFIX = ".pdf"
SUPPORTED_SUFFIXES = TEXT_SUFFIXES | {PDF_SUFFIX}


class TextExtractor(Protocol):
    """Resolve a document locator to its plain text."""

    def extract_text(self, locator: str) -> str:
        """Return document text or raise ``TransportError``."""


def _safe_name(name: str) -> str:
    return "".join(c if c.isalnum() or c in ("_", "-", ".") else "_" for c in name)


class LocalDocumentStore:
    """Stores documents under a root directory, addressed by relative keys."""

    def __init__(self, root: Path) -> None:
        self.root = root.expanduser().resolve()

    def put(self, source: Path, *, prefix: str = "", on_date: date | None = None) -> str:
        """Copy ``source`` into the store and return its locator."""

        if source.suffix.lower() not in SUPPORTED_SUFFIXES:
            raise ValueError(
                f"Unsupported document type {source.suffix!r}; "
                f"expected one of: {', '.join(sorted(SUPPORTED_SUFFIXES))}",
            )
        parts = [_safe_name(part) for part in prefix.split("/") if part]
        parts.extend(
            [
                (on_date or date.today()).isoformat(),
                uuid.uuid4().hex,
                _safe_name(source.name),
            ],
        )
        locator = "/".join(parts)
        target = self.root.joinpath(*parts)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)
        logger.info("Stored document %s as %s", source, locator)
        return locator

    def resolve(self, locator: str) -> Path:
        path = (self.root / locator).resolve()
        if not path.is_relative_to(self.root):
            raise TransportError(f"Locator escapes document root: {locator!r}", transient=False)
        return path

    def extract_text(self, locator: str) -> str:
        path = self.resolve(locator)
        if not path.is_file():
            raise TransportError(f"Document not found: {locator}", transient=False)

        suffix = path.suffix.lower()
        if suffix in TEXT_SUFFIXES:
            text = _read_text(path)
        elif suffix == PDF_SUFFIX:
            text = _read_pdf(path)
        else:
            raise TransportError(f"Unsupported document type: {locator}", transient=False)
        logger.info("Extracted %d characters from %s", len(text), locator)
        return text


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as error:
        raise TransportError(f"Failed to read {path.name}: {error}", transient=False) from error


def _read_pdf(path: Path) -> str:
    try:
        reader = PdfReader(str(path))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (OSError, ValueError, PyPdfError) as error:
        raise TransportError(
            f"PDF parsing failed for {path.name}: {error}",
            transient=False,
        ) from error
    return "\n\n".join(pages)
