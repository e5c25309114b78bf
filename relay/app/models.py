"""
Data Models Module

Pydantic models for the payloads the relay produces or reads itself.
Relayed bodies are passed through untouched and have no model.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# ThingsBoard Authentication Models
# ============================================================================

class LoginRequest(BaseModel):
    """Body of POST /api/auth/login on ThingsBoard."""
    username: str = Field(..., description="ThingsBoard username")
    password: str = Field(..., description="ThingsBoard password")


class LoginResponse(BaseModel):
    """Successful ThingsBoard login reply."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    token: Optional[str] = Field(None, description="Short-lived JWT for API calls")
    refresh_token: Optional[str] = Field(
        None, alias="refreshToken", description="Refresh token (unused by the relay)"
    )


# ============================================================================
# Relay Response Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Error body returned for every relay failure."""
    error: str = Field(..., description="Human readable error message")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")


class ServiceInfo(BaseModel):
    """Root endpoint response."""
    service: str
    version: str
    description: str
    endpoints: Dict[str, str]
