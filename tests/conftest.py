"""
Shared pytest fixtures.

The HTTP transport is replaced by FakeSession, which answers each request from a
queue of canned bodies (or raises a queued exception), and sleep is replaced by a
recorder so backoff delays can be asserted without waiting.
"""

from __future__ import annotations

import json

import pytest

from merchant_reports.http_client import HttpClient
from merchant_reports.request_builder import build_request

BASE_URL = "https://merchant.example.com/v1/"
TOKEN = "mock_token"


class FakeResponse:
    """Stand-in for requests.Response: only what HttpClient reads."""

    def __init__(self, body, status_code: int = 200):
        self._body = body
        self.status_code = status_code
        self.text = body if isinstance(body, str) else json.dumps(body)

    def json(self):
        if isinstance(self._body, str):
            return json.loads(self._body)
        return self._body


class FakeSession:
    """Replays queued outcomes in order and records every request it receives."""

    def __init__(self, outcomes=None):
        self.outcomes = list(outcomes or [])
        self.calls: list[dict] = []

    def queue(self, *outcomes):
        self.outcomes.extend(outcomes)

    def request(self, method, url, **kwargs):
        body = kwargs.get("data")
        self.calls.append({
            "method": method,
            "url": url,
            "headers": kwargs.get("headers"),
            "payload": json.loads(body) if body else None,
            "timeout": kwargs.get("timeout"),
        })
        if not self.outcomes:
            raise AssertionError(f"Unexpected request #{len(self.calls)} to {url}")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, FakeResponse):
            return outcome
        return FakeResponse(outcome)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def error_body(code: int = 500, message: str = "Internal error") -> dict:
    return {"error": {"code": code, "message": message, "status": "INTERNAL"}}


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def sleeps():
    """List that collects every requested sleep, in seconds."""
    return []


@pytest.fixture
def http_client(fake_session, sleeps):
    return HttpClient(
        timeout_sec=5,
        session_factory=lambda: fake_session,
        sleep=sleeps.append,
    )


@pytest.fixture
def report_request():
    return build_request(
        "1234/reports/search",
        "post",
        TOKEN,
        payload={"query": "SELECT product_view.title FROM ProductView", "pageSize": 1000},
        base_url=BASE_URL,
    )
