"""
Unit Tests for the Application Factory
======================================

Tests for relay/app/main.py and the response translation helper.
"""

import httpx
from fastapi import status
from fastapi.testclient import TestClient

from relay.app.config import get_settings
from relay.app.main import CORS_HEADERS, create_application
from relay.app.proxy import UpstreamClient
from relay.app.proxy.routes import translate_upstream_response


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok", "service": "relay", "version": "1.0.0"}
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_root_lists_endpoints(client):
    response = client.get("/")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["endpoints"]["health"] == "/health"


def test_lifespan_creates_and_closes_upstream_client(monkeypatch):
    """Test that the shared HTTP client lives for the application lifetime"""
    monkeypatch.setenv("TB_HOST", "http://thingsboard:8080")
    monkeypatch.setenv("TB_USER", "tenant@thingsboard.org")
    monkeypatch.setenv("TB_PASS", "tenant-password")
    get_settings.cache_clear()
    app = create_application()

    with TestClient(app):
        upstream_client = app.state.upstream_client
        assert isinstance(upstream_client, UpstreamClient)
        assert upstream_client.http_client.timeout.read is None

    assert app.state.upstream_client is None
    assert upstream_client.http_client.is_closed
    get_settings.cache_clear()


def test_cors_headers_values():
    assert CORS_HEADERS == {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "GET,POST,DELETE,OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }


# ============================================================================
# translate_upstream_response
# ============================================================================

def test_translate_empty_body():
    response = translate_upstream_response(httpx.Response(202))

    assert response.status_code == 202
    assert response.body == b""


def test_translate_json_body():
    response = translate_upstream_response(httpx.Response(201, text='{"id": 7}'))

    assert response.status_code == 201
    assert response.media_type == "application/json"
    assert response.body == b'{"id":7}'


def test_translate_ignores_declared_content_type():
    """Test that JSON is detected from the body, not the upstream header"""
    upstream = httpx.Response(
        200, text='{"ok": true}', headers={"Content-Type": "text/plain"}
    )

    response = translate_upstream_response(upstream)

    assert response.media_type == "application/json"


def test_translate_text_body():
    response = translate_upstream_response(httpx.Response(500, text="Internal Server Error"))

    assert response.status_code == 500
    assert response.media_type == "text/plain"
    assert response.body == b"Internal Server Error"
