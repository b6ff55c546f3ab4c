"""
Core Module

Provides API schemas and dependencies for the application.
"""

from .schemas import (
    TaskAcceptedResponse,
    ErrorResponse,
    PoolStatus,
    HealthResponse,
)
from .dependencies import get_dispatcher

__all__ = [
    "TaskAcceptedResponse",
    "ErrorResponse",
    "PoolStatus",
    "HealthResponse",
    "get_dispatcher",
]
