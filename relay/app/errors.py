"""
Relay error taxonomy.

Every failure the relay reports is a RelayError carrying the HTTP status it
maps to. The application converts them into ``{"error": message}`` bodies
at the boundary, so handlers only ever raise.
"""

from fastapi import status


class RelayError(Exception):
    """Base class for errors returned to the relay caller."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(RelayError):
    """A required upstream secret is not configured."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ClientInputError(RelayError):
    """The inbound request is missing something the relay needs."""

    status_code = status.HTTP_400_BAD_REQUEST


class UpstreamAuthError(RelayError):
    """ThingsBoard rejected the configured credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, upstream_status: int, detail: str):
        super().__init__(f"ThingsBoard auth failed ({upstream_status}): {detail}")
        self.upstream_status = upstream_status


class ProxyError(RelayError):
    """Any other failure while relaying: network, timeout, serialization."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    @classmethod
    def from_exception(cls, exc: Exception) -> "ProxyError":
        description = str(exc) or type(exc).__name__
        return cls(f"Proxy error: {description}")
