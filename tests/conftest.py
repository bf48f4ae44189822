"""Pytest configuration and fixtures.

Provides environment isolation, a scripted transport double, and automatic
API test skipping. Fixtures marked autouse apply to every test.
"""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass, field
import os
from typing import Any

import pytest

from apsflow.operations import Endpoint
from apsflow.request import RequestDescriptor
from apsflow.transport import Credentials

BASE_URL = "https://aps.test"

# =============================================================================
# Test Doubles
# =============================================================================


@dataclass
class FakeTransport:
    """Transport test double that replays a script and records requests.

    Each call pops the next scripted entry: exceptions are raised, anything
    else is returned as the raw body. An empty script returns ``default``.
    """

    script: list[Any] = field(default_factory=list)
    default: Any = '{"status": "ok"}'
    requests: list[RequestDescriptor] = field(default_factory=list)
    credentials: list[Credentials] = field(default_factory=list)

    async def invoke(self, request: RequestDescriptor, credentials: Credentials) -> Any:
        self.requests.append(request)
        self.credentials.append(credentials)
        if not self.script:
            return self.default
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture
def endpoint() -> Endpoint:
    return Endpoint(base_url=BASE_URL)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(access_token="test-token")


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_aps_env(request, monkeypatch):
    """Ensure a clean APS environment for each test.

    Clears APS_* env vars to prevent test pollution.
    Opt-out: @pytest.mark.allow_env_pollution or @pytest.mark.api
    """
    if request.node.get_closest_marker("allow_env_pollution") or (
        "api" in request.node.keywords
    ):
        return

    for key in list(os.environ.keys()):
        if key.startswith("APS_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Pytest Hooks
# =============================================================================

API_TESTS_REASON = "API tests require ENABLE_API_TESTS=1"


def _api_tests_enabled() -> bool:
    return bool(os.getenv("ENABLE_API_TESTS"))


def pytest_collection_modifyitems(items):
    """Automatically skip API tests when not explicitly enabled."""
    if _api_tests_enabled():
        return
    skip_api = pytest.mark.skip(reason=API_TESTS_REASON)
    for item in items:
        if "api" in item.keywords:
            item.add_marker(skip_api)


@pytest.fixture
def aps_access_token():
    """Return APS_ACCESS_TOKEN or skip the test if unavailable."""
    key = os.getenv("APS_ACCESS_TOKEN")
    if not key:
        pytest.skip("APS_ACCESS_TOKEN not set")
    return key
