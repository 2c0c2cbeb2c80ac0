"""
StayHub Backend: Shared Schemas
================================

What:  Envelope pieces reused by every resource: the error body, the
       pagination block, the bare success acknowledgement, and health.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CamelModel(BaseModel):
    """Base for models whose JSON keys are camelCase aliases."""

    model_config = {"populate_by_name": True, "from_attributes": True}


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx response.

    Example:
        {
            "error": "validation_error",
            "message": "Solo se pueden cancelar reservas activas",
            "details": {"status": "cancelled"},
            "request_id": "3f2a9c1e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class PaginationMeta(CamelModel):
    """
    Pagination block of every list response.

    totalPages = ceil(total / limit), hasMore = currentPage < totalPages.
    """
    total: int = Field(description="Total rows matching the filters")
    current_page: int = Field(alias="currentPage")
    total_pages: int = Field(alias="totalPages")
    has_more: bool = Field(alias="hasMore")


class SuccessResponse(BaseModel):
    success: bool = True


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """
    What:  Service status plus database reachability.
    Who:   Platform health probes and the uptime monitor.
    """
    status: str = Field(description="healthy or unhealthy")
    timestamp: datetime
    environment: str
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float
