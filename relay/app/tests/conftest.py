"""
Shared fixtures for relay tests.

ThingsBoard is replaced with an httpx.MockTransport so every outbound call
is recorded and can be asserted on.
"""

from typing import List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from relay.app.config import Settings, get_settings
from relay.app.main import create_application
from relay.app.proxy import UpstreamClient


class FakeThingsBoard:
    """
    Minimal stand-in for the ThingsBoard HTTP API.

    Attributes:
        login_response: Reply to POST /api/auth/login
        api_response: Reply to every other request
        login_error: Exception raised for the login request, if set
        error: Exception raised for non-login requests, if set
        requests: Every request received, in order
    """

    def __init__(self):
        self.login_response = httpx.Response(
            200, json={"token": "abc", "refreshToken": "refresh"}
        )
        self.api_response = httpx.Response(200, json={"id": 123})
        self.login_error: Optional[Exception] = None
        self.error: Optional[Exception] = None
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/api/auth/login":
            if self.login_error is not None:
                raise self.login_error
            return self._fresh(self.login_response)
        if self.error is not None:
            raise self.error
        return self._fresh(self.api_response)

    @staticmethod
    def _fresh(response: httpx.Response) -> httpx.Response:
        # Responses are consumed by the client, so hand out a copy per call
        return httpx.Response(
            response.status_code,
            headers=response.headers,
            content=response.content,
        )

    @property
    def forwarded(self) -> List[httpx.Request]:
        """Requests other than the login call."""
        return [r for r in self.requests if r.url.path != "/api/auth/login"]


@pytest.fixture
def mock_settings():
    """Settings with complete ThingsBoard credentials"""
    return Settings(
        TB_HOST="http://thingsboard:8080",
        TB_USER="tenant@thingsboard.org",
        TB_PASS="tenant-password",
        _env_file=None,
    )


@pytest.fixture
def thingsboard():
    """Fake ThingsBoard upstream"""
    return FakeThingsBoard()


@pytest.fixture
def upstream_client(thingsboard):
    """UpstreamClient routed to the fake ThingsBoard"""
    return UpstreamClient(httpx.AsyncClient(transport=httpx.MockTransport(thingsboard)))


@pytest.fixture
def app(mock_settings, upstream_client):
    """Create test FastAPI application"""
    app = create_application()
    app.dependency_overrides[get_settings] = lambda: mock_settings
    app.state.upstream_client = upstream_client
    return app


@pytest.fixture
def client(app):
    """Create test client"""
    return TestClient(app)
