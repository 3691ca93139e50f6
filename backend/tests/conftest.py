# backend/tests/conftest.py
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient

from relay.config import Settings
from relay.main import create_app


class Upstream:
    """Stands in for the siteverify endpoints and records every call."""

    def __init__(self):
        self.calls = []
        self.timeouts = []
        self.body = {"success": True}
        self.error = None
        self.raw = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append({
            "url": str(request.url),
            "form": {k: v[0] for k, v in parse_qs(request.content.decode()).items()},
        })
        self.timeouts.append(request.extensions.get("timeout"))
        if self.error is not None:
            raise self.error(request)
        if self.raw is not None:
            return httpx.Response(200, content=self.raw)
        return httpx.Response(200, json=self.body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        TURNSTILE_CHECK_SECRET_KEY="ts-normal",
        TURNSTILE_INVISIBLE_SECRET_KEY="ts-invisible",
        RECAPTCHA_SECRET_KEY="rc-secret",
        CORS_ORIGIN="http://localhost:5173",
        PUBLIC_DIR=str(tmp_path / "no-such-dir"),
        REQUIRE_SECRETS=False,
    )


@pytest.fixture
def client(settings, upstream):
    return TestClient(create_app(settings, transport=upstream.transport()))
