"""
Utilities Module

Provides shared utilities across the application:
- Logging configuration
- Custom exceptions
"""

from .logging import get_logger, setup_logging, log_solve_outcome
from .exceptions import (
    SolverError,
    ValidationError,
    UnknownTaskError,
    InteractionTimeoutError,
    SessionError,
    PoolInitError,
    StoreIOError,
    ConfigurationError,
)

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    "log_solve_outcome",
    # Exceptions
    "SolverError",
    "ValidationError",
    "UnknownTaskError",
    "InteractionTimeoutError",
    "SessionError",
    "PoolInitError",
    "StoreIOError",
    "ConfigurationError",
]
