"""
Custom Exceptions Module

Defines application-specific exceptions for clearer error handling.
All exceptions inherit from a base SolverError for easy catching.

Client-facing errors (ValidationError, UnknownTaskError) carry a 4xx
status code and are rendered by the FastAPI exception handler.
Task-level errors (InteractionTimeoutError, SessionError) never leave
the task runner; they are turned into a stored failure result.

Usage:
    from utils.exceptions import UnknownTaskError

    try:
        result = await dispatcher.fetch_result(task_id)
    except UnknownTaskError as e:
        logger.warning(f"Lookup failed: {e}")
"""

from typing import Optional, Dict, Any


class SolverError(Exception):
    """
    Base exception for all solver application errors.

    Attributes:
        message: Human-readable error message
        details: Additional error details (optional)
        status_code: HTTP status code to return (optional)
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "status": "error",
            "error": self.message,
            "details": self.details
        }


# =============================================================================
# Client Errors
# =============================================================================

class ValidationError(SolverError):
    """
    Raised when a solve submission is missing required fields.

    No task is created when this is raised.
    """

    def __init__(
        self,
        message: str = "Both 'url' and 'sitekey' are required",
        missing: Optional[list] = None
    ):
        super().__init__(
            message=message,
            details={"missing": missing or []},
            status_code=400
        )


class UnknownTaskError(SolverError):
    """Raised when a result is requested for an id that was never issued."""

    def __init__(self, task_id: Optional[str] = None):
        super().__init__(
            message="Invalid task ID",
            details={"task_id": task_id},
            status_code=400
        )


# =============================================================================
# Task Errors
# =============================================================================

class InteractionTimeoutError(SolverError):
    """
    Raised when the interaction loop runs out of attempts without a token.
    """

    def __init__(self, attempts: int):
        super().__init__(
            message=f"No token after {attempts} attempts",
            details={"attempts": attempts},
            status_code=422
        )


class SessionError(SolverError):
    """
    Raised when a browser session cannot be set up or driven.

    Common causes:
        - Browser context creation failed
        - Navigation failed
        - Challenge element never appeared
    """

    def __init__(
        self,
        message: str = "Browser session failed",
        step: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            details={"step": step, **(details or {})},
            status_code=422
        )


# =============================================================================
# Startup / Infrastructure Errors
# =============================================================================

class PoolInitError(SolverError):
    """Raised when a worker browser cannot be launched at startup."""

    def __init__(
        self,
        message: str = "Failed to initialize worker pool",
        slot: Optional[int] = None
    ):
        super().__init__(
            message=message,
            details={"slot": slot},
            status_code=500
        )


class StoreIOError(SolverError):
    """Raised when the results file cannot be read or written."""

    def __init__(
        self,
        message: str = "Result store IO failed",
        path: Optional[str] = None
    ):
        super().__init__(
            message=message,
            details={"path": path},
            status_code=500
        )


class ConfigurationError(SolverError):
    """Raised when the process configuration cannot be started with."""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(
            message=message,
            details={"setting": setting},
            status_code=500
        )
