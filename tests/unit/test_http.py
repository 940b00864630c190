from __future__ import annotations

import pytest
import requests

from roster.common.http import HttpClient, HttpRequestError, RetryConfig, RetryableHttpError, TimeoutConfig


class FakeResponse:
    def __init__(self, status_code: int, text: str = ""):
        self.status_code = status_code
        self.text = text


def test_http_get_text_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    seen = {}

    def fake_request(**kwargs):
        seen.update(kwargs)
        return FakeResponse(200, "<html>ok</html>")

    monkeypatch.setattr(client.session, "request", fake_request)
    payload = client.get_text("https://example.com", timeout=TimeoutConfig(connect=2, read=5))

    assert payload == "<html>ok</html>"
    assert seen["method"] == "GET"
    assert seen["timeout"] == (2, 5)
    assert seen["headers"]["User-Agent"].startswith("parliament-roster")


def test_http_retryable_status_raises_retryable_error(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503))

    with pytest.raises(RetryableHttpError):
        client.get_text("https://example.com")


def test_http_client_error_is_not_retried(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0, max_wait=0))
    calls = []

    def fake_request(**_kwargs):
        calls.append(1)
        return FakeResponse(404)

    monkeypatch.setattr(client.session, "request", fake_request)

    with pytest.raises(HttpRequestError):
        client.get_text("https://example.com")
    assert len(calls) == 1


def test_http_transport_failure_is_retried_then_succeeds(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0, max_wait=0))
    answers = [requests.ConnectionError("reset"), FakeResponse(200, "second time")]

    def fake_request(**_kwargs):
        answer = answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    monkeypatch.setattr(client.session, "request", fake_request)

    assert client.get_text("https://example.com") == "second time"


def test_head_ok_reports_status(monkeypatch):
    client = HttpClient()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200))
    assert client.head_ok("https://example.com") is True

    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(404))
    assert client.head_ok("https://example.com") is False
