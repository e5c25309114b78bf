"""
ThingsBoard Upstream Client
===========================

Thin wrapper over ``httpx.AsyncClient`` that performs the two upstream calls
of a relay: login, then the forwarded request.

The wrapped client only pools connections. Tokens are returned to the
caller and never stored here, so every relay authenticates afresh.
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from ..config import UpstreamCredentials
from ..errors import UpstreamAuthError
from ..models import LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/auth/login"

# Methods that never carry a forwarded body
BODYLESS_METHODS = frozenset({"GET", "HEAD"})


def build_upstream_headers(token: str) -> Dict[str, str]:
    """
    Build headers for a forwarded ThingsBoard request.

    ThingsBoard reads its JWT from X-Authorization rather than Authorization.
    """
    return {
        "X-Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
    }


class UpstreamClient:
    """
    Client for the ThingsBoard HTTP API.

    Attributes:
        http_client: Shared httpx.AsyncClient (no base URL, no timeout)
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self.http_client = http_client

    async def login(self, credentials: UpstreamCredentials) -> str:
        """
        Obtain a session token from ThingsBoard.

        Args:
            credentials: Validated upstream credentials

        Returns:
            The JWT returned by ThingsBoard

        Raises:
            UpstreamAuthError: If ThingsBoard rejects the login or omits the token
        """
        payload = LoginRequest(username=credentials.username, password=credentials.password)

        response = await self.http_client.post(
            credentials.url_for(LOGIN_PATH),
            json=payload.model_dump(),
            headers={"Content-Type": "application/json"},
        )

        if not response.is_success:
            logger.warning(
                "ThingsBoard login rejected",
                extra={"status_code": response.status_code},
            )
            raise UpstreamAuthError(response.status_code, response.text)

        login = LoginResponse.model_validate(response.json())
        if not login.token:
            logger.warning("ThingsBoard login reply carried no token")
            raise UpstreamAuthError(
                response.status_code, "login response did not include a token"
            )

        return login.token

    async def forward(
        self,
        credentials: UpstreamCredentials,
        token: str,
        method: str,
        path: str,
        body: Optional[Any] = None,
    ) -> httpx.Response:
        """
        Replay a request against ThingsBoard.

        Args:
            credentials: Validated upstream credentials
            token: Token from login(), used for this call only
            method: HTTP method of the inbound request
            path: Upstream API path, appended to the host
            body: Decoded inbound JSON body, or None

        Returns:
            The raw upstream response
        """
        method = method.upper()
        content = None
        if body is not None and method not in BODYLESS_METHODS:
            content = json.dumps(body)

        return await self.http_client.request(
            method,
            credentials.url_for(path),
            headers=build_upstream_headers(token),
            content=content,
        )

    async def aclose(self) -> None:
        await self.http_client.aclose()
