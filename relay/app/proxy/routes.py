"""
Relay Routes - ThingsBoard Request Forwarding
=============================================

This module implements the single relay endpoint that forwards browser
requests to ThingsBoard using server-side credentials.

Flow:
-----
1. OPTIONS preflight is answered immediately with 204
2. Upstream credentials are validated (TB_HOST, TB_USER, TB_PASS)
3. The ``path`` query parameter is required
4. The relay logs in to ThingsBoard and receives a fresh token
5. The inbound method and body are replayed against ``<TB_HOST><path>``
6. ThingsBoard's status and body are returned unchanged

Endpoints:
----------
- /api/tb (any method): Relay a call to ThingsBoard
"""

import json
import logging
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse

from ..config import Settings, get_settings
from ..errors import ClientInputError, ProxyError, RelayError
from .client import BODYLESS_METHODS, UpstreamClient

logger = logging.getLogger(__name__)

relay_router = APIRouter()

RELAY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


# ============================================================================
# Helpers
# ============================================================================

def get_upstream_client(request: Request) -> UpstreamClient:
    """
    Get the shared upstream client from app state.

    Raises:
        ProxyError: If the application lifespan has not created it
    """
    client = getattr(request.app.state, "upstream_client", None)
    if client is None:
        raise ProxyError("Proxy error: upstream client not initialized")
    return client


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON and cannot be rendered back as JSON
    raise ValueError(f"{name} is not valid JSON")


def parse_json(text: Any) -> Any:
    """json.loads that rejects NaN, Infinity and -Infinity."""
    return json.loads(text, parse_constant=_reject_constant)


def is_empty_body(body: Any) -> bool:
    """
    True for decoded bodies that are not forwarded: null, false, 0 and "".

    Empty objects and arrays are still forwarded.
    """
    if body is None or body == "":
        return True
    return isinstance(body, (bool, int, float)) and body == 0


async def read_inbound_body(request: Request) -> Optional[Any]:
    """
    Decode the inbound body for forwarding.

    Returns None for GET/HEAD and for empty bodies, including the JSON
    values null, false, 0 and "". A body that is not valid JSON is
    returned as text so it is forwarded as a JSON string.
    """
    if request.method.upper() in BODYLESS_METHODS:
        return None

    raw = await request.body()
    if not raw:
        return None

    try:
        body = parse_json(raw)
    except ValueError:
        body = raw.decode("utf-8", errors="replace")

    if is_empty_body(body):
        return None
    return body


def translate_upstream_response(upstream: httpx.Response) -> Response:
    """
    Mirror a ThingsBoard response back to the caller.

    - Empty body: upstream status, no content
    - JSON body: upstream status, the decoded JSON
    - Anything else: upstream status, the raw text as text/plain
    """
    text = upstream.text
    if not text:
        return Response(status_code=upstream.status_code)

    try:
        data = parse_json(text)
    except ValueError:
        return PlainTextResponse(text, status_code=upstream.status_code)

    return JSONResponse(data, status_code=upstream.status_code)


# ============================================================================
# Relay Endpoint
# ============================================================================

@relay_router.api_route("/api/tb", methods=RELAY_METHODS)
async def relay_to_thingsboard(
    request: Request,
    path: Optional[str] = Query(
        None,
        description="ThingsBoard API path, e.g. /api/device/info/<id>",
    ),
    settings: Settings = Depends(get_settings),
) -> Response:
    """
    Relay a request to ThingsBoard.

    Every call logs in again; the token is used for the forwarded request
    and then dropped.

    Raises:
        ConfigurationError: TB_HOST, TB_USER or TB_PASS missing
        ClientInputError: ``path`` missing
        UpstreamAuthError: ThingsBoard rejected the login
        ProxyError: Any other failure
    """
    method = request.method.upper()

    if method == "OPTIONS":
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    credentials = settings.upstream_credentials()

    if not path:
        raise ClientInputError("Missing required query parameter: path")

    try:
        upstream_client = get_upstream_client(request)
        body = await read_inbound_body(request)

        token = await upstream_client.login(credentials)

        logger.info(
            "Relaying request to ThingsBoard",
            extra={"method": method, "path": path, "has_body": body is not None},
        )

        upstream_response = await upstream_client.forward(
            credentials, token, method, path, body
        )

        logger.info(
            "ThingsBoard responded",
            extra={
                "method": method,
                "path": path,
                "status_code": upstream_response.status_code,
            },
        )

        return translate_upstream_response(upstream_response)

    except RelayError:
        raise

    except Exception as e:
        logger.error(
            f"Unexpected error while relaying: {e}",
            exc_info=True,
            extra={"method": method, "path": path},
        )
        raise ProxyError.from_exception(e) from e
