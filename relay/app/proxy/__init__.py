"""
Proxy Package
=============

This package implements the relay that forwards browser requests to the
ThingsBoard HTTP API with credentials held server-side.

Main Components:
----------------
- client.py: UpstreamClient performing the login and forwarded calls
- routes.py: FastAPI router with the /api/tb relay endpoint

Usage:
------
    from relay.app.proxy import relay_router
    app.include_router(relay_router)
"""

from .client import UpstreamClient
from .routes import relay_router

__all__ = ["relay_router", "UpstreamClient"]
