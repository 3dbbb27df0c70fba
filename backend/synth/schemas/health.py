"""
Synth Backend: Health and Error Response Schemas
=================================================

What:  Pydantic models for the operational HTTP surface.
Who:   HealthResponse is returned by GET /health; ErrorResponse documents the
       body produced by the global exception handlers in main.py.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "snippet with ID '42' was not found",
            "request_id": "1f2e3d4c"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and store status.
    Who:   Returned by GET /health for monitoring and load balancer health checks.
    """
    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    store: str = Field(description="Store status: ready, missing")
    records: Dict[str, int] = Field(
        default_factory=dict,
        description="Number of stored records per entity kind",
    )
    pending_tasks: int = Field(default=0, description="Scheduled tasks not yet completed")
    uptime_seconds: float = Field(description="Seconds since service started")
