from __future__ import annotations

import json

import pytest

from multihost.config import UploaderConfig
from multihost.credentials import CredentialStore
from multihost.records import InMemoryRecordStore


class FakeResponse:
    def __init__(
        self,
        payload: object = None,
        *,
        status_code: int = 200,
        text: str | None = None,
        content_type: str | None = None,
        reason: str = "OK",
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text
        if content_type is None:
            content_type = "application/json" if payload is not None else "text/html"
        self.headers = {"content-type": content_type}

    def json(self):
        return json.loads(self.text)


class FakeHttp:
    """Stands in for the ``requests`` module; routes on the URL without its query string."""

    def __init__(self) -> None:
        self.routes: dict[str, list[object]] = {}
        self.calls: list[dict[str, object]] = []

    def add(self, url: str, *responses: object) -> "FakeHttp":
        self.routes.setdefault(url, []).extend(responses)
        return self

    def request(self, method: str, url: str, **kwargs):
        base = url.split("?", 1)[0]
        self.calls.append({"method": method, "url": url, "base": base, **kwargs})
        queue = self.routes.get(base)
        if not queue:
            raise AssertionError(f"Unexpected request: {method} {base}")
        # The last queued response is sticky.
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        return item

    def urls(self) -> list[str]:
        return [call["base"] for call in self.calls]


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def records() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def credentials(records) -> CredentialStore:
    return CredentialStore(records)


@pytest.fixture
def config() -> UploaderConfig:
    return UploaderConfig(retry_backoff_seconds=0.0)


@pytest.fixture
def respond():
    """Factory for canned :class:`FakeResponse` objects."""
    return FakeResponse
