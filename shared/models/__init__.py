"""
Shared Models
=============

Pydantic response models shared by the HTTP services.
"""

from shared.models.common import ErrorResponse, HealthResponse, MessageResponse

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "MessageResponse",
]
