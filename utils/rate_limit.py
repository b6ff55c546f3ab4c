"""
Submission Rate Limiting

Caps how many solve tasks one client can queue per time window.
Only the submission route is decorated; polling /result is unlimited.
Counters live in process memory, like the worker pool itself.

Usage:
    from utils.rate_limit import configure_rate_limits, limiter, limit_solve, rate_limit_exceeded_handler

    app.state.limiter = limiter
    configure_rate_limits(config)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    @router.get("/turnstile")
    @limit_solve
    async def process_turnstile(request: Request, ...):
        ...
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from config.settings import Settings, settings
from utils.logging import get_logger

logger = get_logger(__name__)

RETRY_AFTER_SECONDS = 60


def client_key(request: Request) -> str:
    """
    Identify the submitting client.

    The first X-Forwarded-For hop wins when the API runs behind a proxy.
    """
    forwarded_for = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded_for.split(",")[0].strip()
    return first_hop or get_remote_address(request)


_solve_limit = settings.RATE_LIMIT_SOLVE


def configure_rate_limits(config: Settings) -> None:
    """
    Take the submission limit from ``config``.

    The limiter is process-wide, so the last app built decides the limit.
    """
    global _solve_limit
    _solve_limit = config.RATE_LIMIT_SOLVE
    logger.debug(f"Solve submissions limited to {_solve_limit} per client")


def solve_limit() -> str:
    """Per-client submission limit, e.g. "60/minute"."""
    return _solve_limit


limiter = Limiter(key_func=client_key, storage_uri="memory://")


def limit_solve(endpoint):
    """Apply the solve submission limit to an endpoint."""
    return limiter.limit(solve_limit)(endpoint)


async def rate_limit_exceeded_handler(
    request: Request,
    exc: RateLimitExceeded
) -> JSONResponse:
    """Render a rejected submission in the standard error shape."""
    logger.warning(f"🚦 Submission limit hit by {client_key(request)} ({exc.detail})")

    return JSONResponse(
        status_code=429,
        content={
            "status": "error",
            "error": f"Too many solve requests. Limit: {exc.detail}",
            "details": {"retry_after": RETRY_AFTER_SECONDS},
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )
