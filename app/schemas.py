"""
Nano Banana Proxy - Pydantic Schemas
Response models and enums for the API
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class RequestVariant(str, Enum):
    """Which upstream queue a request id belongs to"""
    GENERATION = "generation"
    EDIT = "edit"


class HealthResponse(BaseModel):
    """Health check response"""
    status: str = "ok"
    message: str = "Proxy server is running"


class ServiceInfo(BaseModel):
    """Root endpoint response"""
    name: str
    version: str
    docs: str = "/docs"


class ErrorResponse(BaseModel):
    """Body returned for every failed request"""
    error: Any = Field(
        ...,
        description="Upstream error body relayed verbatim, or a short message",
        examples=["API key not configured on server", {"error": "rate limited"}],
    )


class UploadResponse(BaseModel):
    """Storage upload result as returned by the upstream"""
    url: Optional[str] = Field(None, description="URL of the stored object")
