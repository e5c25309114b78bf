"""
FastAPI Relay Application Factory
=================================

Main entry point for the relay that sits between browser clients and the
ThingsBoard HTTP API.

Architecture:
    Browser → Relay (this service) → ThingsBoard

Routers:
    - /api/tb   : Relayed ThingsBoard calls (path given as ?path=...)
    - /health   : Health check endpoint

Environment Variables:
    - TB_HOST: ThingsBoard base URL (e.g., "https://thingsboard.example.com")
    - TB_USER: ThingsBoard username
    - TB_PASS: ThingsBoard password
    - LOG_LEVEL: Logging level (default: INFO)
    - RELAY_HOST / RELAY_PORT: Bind address (default: 0.0.0.0:8080)

Running the Service:
    Development:
        uvicorn relay.app.main:app --reload --host 0.0.0.0 --port 8080

    Production:
        uvicorn relay.app.main:app --host 0.0.0.0 --port 8080 --workers 4
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Dict

import httpx
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .config import get_settings
from .errors import ProxyError, RelayError
from .models import ErrorResponse, HealthResponse, ServiceInfo
from .proxy import UpstreamClient, relay_router

SERVICE_NAME = "relay"
SERVICE_VERSION = "1.0.0"

# Sent on every response so browser callers can read relayed results
CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,DELETE,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Configure logging
        - Create the pooled HTTP client used for ThingsBoard calls

    Shutdown:
        - Close the HTTP client
    """
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("relay.main")

    missing = settings.missing_upstream_vars
    if missing:
        # Reported per request as a 500; the service still starts
        logger.warning(
            "ThingsBoard configuration incomplete",
            extra={"missing": missing},
        )

    # No timeout: relayed calls inherit the caller's deadline
    app.state.upstream_client = UpstreamClient(httpx.AsyncClient(timeout=None))
    logger.info(
        "Relay service started",
        extra={"service": SERVICE_NAME, "version": SERVICE_VERSION},
    )

    yield

    logger.info("Shutting down relay service")
    await app.state.upstream_client.aclose()
    app.state.upstream_client = None


def create_application() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Lifespan management
        - CORS headers on every response
        - Relay and system routes
        - Exception handlers

    Returns:
        FastAPI: Configured application instance
    """
    app = FastAPI(
        title="ThingsBoard Relay",
        description="Relays browser requests to ThingsBoard with server-side credentials",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.upstream_client = None

    @app.middleware("http")
    async def apply_cors_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    app.include_router(relay_router, tags=["ThingsBoard Relay"])

    @app.get("/health", tags=["System"], response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="ok", service=SERVICE_NAME, version=SERVICE_VERSION)

    @app.get("/", tags=["System"], response_model=ServiceInfo)
    async def root() -> ServiceInfo:
        """Service metadata and available endpoints."""
        return ServiceInfo(
            service=SERVICE_NAME,
            version=SERVICE_VERSION,
            description="ThingsBoard relay",
            endpoints={
                "health": "/health",
                "docs": "/docs",
                "relay": "/api/tb?path=<thingsboard api path>",
            },
        )

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        """Convert relay errors into {"error": message} responses."""
        logger = logging.getLogger("relay.main")
        logger.warning(
            exc.message,
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__,
                "status_code": exc.status_code,
            },
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=exc.message).model_dump(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Runs outside the CORS middleware, so the headers are set here.
        """
        logger = logging.getLogger("relay.main")
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__,
            },
            exc_info=True,
        )
        error = ProxyError.from_exception(exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error=error.message).model_dump(),
            headers=CORS_HEADERS,
        )

    return app


# Create app instance for uvicorn
app = create_application()


if __name__ == "__main__":
    settings = get_settings()

    uvicorn.run(
        "relay.app.main:app",
        host=settings.RELAY_HOST,
        port=settings.RELAY_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
