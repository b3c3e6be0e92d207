"""Pytest configuration - loads .env for integration tests and fakes the network."""

import io
import json
import urllib.error
from email.message import Message
from pathlib import Path
from typing import Any

import pytest
from dotenv import load_dotenv

from vpsie_client.core import APIClient, ClientConfig, RetryPolicy

# Load .env from project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

BASE_URL = "https://api.test.vpsie"
TOKEN = "test-token"


def _headers(content_type: str = "application/json") -> Message:
    headers = Message()
    headers["Content-Type"] = content_type
    return headers


def _encode(body: Any) -> bytes:
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body).encode("utf-8")


class FakeResponse:
    """Stands in for the object returned by OpenerDirector.open()."""

    def __init__(self, status: int, body: bytes):
        self.status = status
        self._body = body
        self.headers = _headers()

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc: Any) -> None:
        return None


class FakeOpener:
    """
    Replays queued outcomes in order.

    Each queued item is either ``(status, body)`` or an exception instance to
    raise. Statuses >= 400 are raised as HTTPError, as urllib does.
    """

    def __init__(self) -> None:
        self.outcomes: list[Any] = []
        self.requests: list[Any] = []
        self.timeouts: list[float | None] = []
        self.on_open = None

    def queue(self, *outcomes: Any) -> "FakeOpener":
        self.outcomes.extend(outcomes)
        return self

    def reply(self, status: int = 200, body: Any = None) -> "FakeOpener":
        return self.queue((status, body))

    @property
    def calls(self) -> int:
        return len(self.requests)

    def open(self, request: Any, timeout: float | None = None) -> FakeResponse:
        self.requests.append(request)
        self.timeouts.append(timeout)
        if self.on_open is not None:
            self.on_open(request)
        if not self.outcomes:
            raise AssertionError(f"unexpected request: {request.get_method()} {request.full_url}")

        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome

        status, body = outcome
        raw = _encode(body)
        if status >= 400:
            raise urllib.error.HTTPError(request.full_url, status, "error", _headers(), io.BytesIO(raw))
        return FakeResponse(status, raw)

    def last_json(self) -> Any:
        data = self.requests[-1].data
        return json.loads(data) if data else None


@pytest.fixture
def opener() -> FakeOpener:
    return FakeOpener()


@pytest.fixture
def retry_policy() -> RetryPolicy:
    """Three attempts with no waiting between them."""
    return RetryPolicy(max_attempts=3, base_delay=0.0, max_delay=0.0)


@pytest.fixture
def config(retry_policy: RetryPolicy) -> ClientConfig:
    return ClientConfig(token=TOKEN, base_url=BASE_URL, timeout=10, retry=retry_policy)


@pytest.fixture
def api_client(config: ClientConfig, opener: FakeOpener) -> APIClient:
    return APIClient(config, opener=opener)
