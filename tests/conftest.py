"""Test setup for menu_builder."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from menu_builder.session import SessionCache, SessionManager  # noqa: E402
from menu_builder.tree import LinkType, ResourceItem  # noqa: E402


@pytest.fixture
def shirts() -> ResourceItem:
    return ResourceItem(id="gid://shopify/Collection/1", title="Shirts", handle="shirts", kind=LinkType.COLLECTION)


@pytest.fixture
def casual_shirts() -> ResourceItem:
    return ResourceItem(
        id="gid://shopify/Collection/2",
        title="Casual Shirts",
        handle="casual-shirts",
        kind=LinkType.COLLECTION,
    )


@pytest.fixture
def about_page() -> ResourceItem:
    return ResourceItem(id="gid://shopify/Page/9", title="About", handle="about", kind=LinkType.PAGE)


@pytest.fixture
def session_cache(tmp_path: Path) -> SessionCache:
    return SessionCache(tmp_path / "cache.json")


@pytest.fixture
def sessions(session_cache: SessionCache) -> SessionManager:
    return SessionManager(session_cache)


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, status_code: int = 200, payload: Any = None, *, url: str = "https://example.test") -> None:
        self.status_code = status_code
        self._payload = payload
        self.url = url

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Records ``post`` calls and replays queued responses or exceptions."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def post(self, url: str, json: Any = None, headers: dict[str, str] | None = None) -> FakeResponse:
        self.calls.append({"url": url, "json": json, "headers": headers or {}})
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_session():
    return FakeSession
