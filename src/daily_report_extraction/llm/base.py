"""Language-model transport interface."""

from __future__ import annotations

from typing import Protocol


class CompletionClient(Protocol):
    """Protocol implemented by model transports.

    Implementations return the raw response text and raise
    ``TransportError`` when the model cannot be reached or errors out.
    """

    def complete(self, prompt: str, *, system_prompt: str | None = None) -> str:
        """Send one prompt and return the model's text response."""

    def close(self) -> None:
        """Release transport resources."""
