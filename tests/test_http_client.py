from __future__ import annotations

import json

import allure
import httpx
import pytest

from daily_report_extraction.errors import TransportError
from daily_report_extraction.llm.http_client import HttpCompletionClient

pytestmark = [
    allure.epic("Model Transport"),
    allure.feature("HTTP Completion Client"),
]


def _client(handler) -> HttpCompletionClient:
    return HttpCompletionClient(
        api_key="secret",
        model="gpt-test",
        base_url="https://llm.example.com/v1/",
        transport=httpx.MockTransport(handler),
    )


def test_complete_posts_chat_request_and_returns_content() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(
            200,
            json={"choices": [{"message": {"role": "assistant", "content": '{"data": null}'}}]},
        )

    with _client(handler) as client:
        content = client.complete("Extract weather", system_prompt="Be precise")

    assert content == '{"data": null}'
    request = captured[0]
    assert request.url == "https://llm.example.com/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer secret"
    body = json.loads(request.content)
    assert body["model"] == "gpt-test"
    assert body["response_format"] == {"type": "json_object"}
    assert body["messages"] == [
        {"role": "system", "content": "Be precise"},
        {"role": "user", "content": "Extract weather"},
    ]


@pytest.mark.parametrize(
    ("status_code", "transient"),
    [(429, True), (503, True), (400, False), (401, False)],
)
def test_error_status_raises_transport_error(status_code: int, transient: bool) -> None:
    with _client(lambda request: httpx.Response(status_code, json={})) as client:
        with pytest.raises(TransportError, match=f"HTTP {status_code}") as error:
            client.complete("prompt")

    assert error.value.transient is transient


def test_timeout_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with _client(handler) as client:
        with pytest.raises(TransportError, match="timed out") as error:
            client.complete("prompt")

    assert error.value.transient is True


def test_missing_content_returns_empty_string() -> None:
    with _client(lambda request: httpx.Response(200, json={"choices": []})) as client:
        assert client.complete("prompt") == ""


def test_non_json_body_is_not_transient() -> None:
    with _client(lambda request: httpx.Response(200, text="<html>oops</html>")) as client:
        with pytest.raises(TransportError, match="non-JSON") as error:
            client.complete("prompt")

    assert error.value.transient is False
