"""OpenAI-compatible chat completion client over httpx."""

from __future__ import annotations

import logging

import httpx

from daily_report_extraction.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4"
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_TEMPERATURE = 0.1
_TRANSIENT_STATUS_CODES = frozenset({408, 409, 429})


class HttpCompletionClient:
    """Chat-completions client requesting JSON-object responses."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers=headers,
            transport=transport or httpx.HTTPTransport(retries=max_retries),
        )

    def complete(self, prompt: str, *, system_prompt: str | None = None) -> str:
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        body = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "response_format": {"type": "json_object"},
        }

        try:
            response = self._client.post("/chat/completions", json=body)
        except httpx.TimeoutException as error:
            logger.warning("Timeout calling model %s", self.model)
            raise TransportError(f"Model request timed out: {error}", transient=True) from error
        except httpx.HTTPError as error:
            logger.warning("HTTP error calling model %s: %s", self.model, error)
            raise TransportError(f"Model request failed: {error}", transient=True) from error

        if not response.is_success:
            transient = (
                response.status_code in _TRANSIENT_STATUS_CODES or response.status_code >= 500
            )
            raise TransportError(
                f"Model endpoint returned HTTP {response.status_code}",
                transient=transient,
            )

        try:
            payload = response.json()
        except ValueError as error:
            raise TransportError(
                "Model endpoint returned non-JSON body",
                transient=False,
            ) from error
        return _message_content(payload)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpCompletionClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def _message_content(payload: object) -> str:
    """Extract ``choices[0].message.content``; an empty string when missing."""

    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""
