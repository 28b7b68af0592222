"""
Common Models
=============

Base response models.

Version: 0.1.0
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Confirmation message."""

    message: str


class ErrorResponse(BaseModel):
    """Error response model. ``error`` carries the underlying failure text."""

    error: str


class HealthResponse(BaseModel):
    """Service health check response."""

    status: str = "healthy"
    service: str
    version: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Component health
    components: dict[str, dict[str, Any]] = Field(default_factory=dict)
