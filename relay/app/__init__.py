"""
ThingsBoard Relay Application
=============================

Server-side relay that forwards browser requests to a ThingsBoard HTTP API.
The ThingsBoard credentials live in the server environment and are never
exposed to the client.

Packages:
    - config: Environment-backed settings and upstream credentials
    - errors: Error taxonomy mapped to HTTP status codes
    - models: Pydantic payload models
    - proxy:  Upstream client and the /api/tb relay endpoint
    - main:   FastAPI application factory
"""
