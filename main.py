"""
Turnstile Solver - Backend Application

FastAPI application that solves Cloudflare Turnstile challenges with a
fixed pool of Playwright browsers.

Features:
    - Asynchronous solve submission with immediate task id
    - Result polling backed by a JSON results file
    - Optional random proxy per task
    - Per-client rate limiting on submissions

Run:
    python main.py --browser-type chromium --thread 2 --useragent "Mozilla/5.0 ..."
    # or
    uvicorn main:app
"""

import argparse
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
import uvicorn

from config.settings import Settings, check_startup_config, settings
from routers import turnstile
from services.turnstile.dispatcher import Dispatcher
from utils.exceptions import ConfigurationError, SolverError
from utils.logging import setup_logging, get_logger
from utils.rate_limit import configure_rate_limits, limiter, rate_limit_exceeded_handler

# Initialize logging
setup_logging()
logger = get_logger(__name__)


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events:
        - Startup: Validate configuration, load results, launch the browser pool
        - Shutdown: Close every browser
    """
    config: Settings = app.state.config
    dispatcher: Dispatcher = app.state.dispatcher

    logger.info(f"Starting {config.APP_NAME} v{config.APP_VERSION}")
    logger.info(f"Browser: {config.BROWSER_TYPE} x{config.THREAD} (headless={config.HEADLESS})")

    check_startup_config(config)
    await dispatcher.startup()

    yield

    logger.info("Shutting down application")
    await dispatcher.shutdown()


# =============================================================================
# FastAPI Application
# =============================================================================

def create_app(
    config: Optional[Settings] = None,
    dispatcher: Optional[Dispatcher] = None
) -> FastAPI:
    """
    Application factory.

    Args:
        config: Settings to run with (defaults to the environment settings)
        dispatcher: Pre-built dispatcher (defaults to one wired from config)
    """
    config = config or settings
    dispatcher = dispatcher or Dispatcher.from_settings(config)

    app = FastAPI(
        title=config.APP_NAME,
        description="Asynchronous Cloudflare Turnstile solving API",
        version=config.APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.config = config
    app.state.dispatcher = dispatcher
    app.state.limiter = limiter
    configure_rate_limits(config)

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    @app.exception_handler(SolverError)
    async def solver_exception_handler(request: Request, exc: SolverError):
        """
        Handle custom solver exceptions.

        Returns standardized error response with appropriate status code.
        """
        logger.warning(f"{exc.__class__.__name__}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict()
        )

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.include_router(turnstile.router)

    return app


# Module-level app for `uvicorn main:app`
app = create_app()


# =============================================================================
# Entry Point
# =============================================================================

def _str_to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise argparse.ArgumentTypeError(f"Expected true or false, got {value!r}")


def parse_args(argv: Optional[List[str]] = None) -> Dict[str, Any]:
    """
    Parse command line flags into settings overrides.

    Only flags given on the command line are returned.
    """
    parser = argparse.ArgumentParser(description="Turnstile Solver API server")
    parser.add_argument("--headless", type=_str_to_bool, help="Run the browser in headless mode")
    parser.add_argument("--useragent", help="Specify a custom User-Agent string")
    parser.add_argument("--debug", type=_str_to_bool, help="Enable debug mode")
    parser.add_argument("--browser-type", help="Browser type (chromium, firefox, webkit)")
    parser.add_argument("--thread", type=int, help="Number of browser threads")
    parser.add_argument("--proxy", type=_str_to_bool, help="Enable proxy support")
    parser.add_argument("--host", help="API host")
    parser.add_argument("--port", type=int, help="API port")
    args = parser.parse_args(argv)

    return {
        name.upper(): value
        for name, value in vars(args).items()
        if value is not None
    }


def main(argv: Optional[List[str]] = None) -> int:
    config = settings.model_copy(update=parse_args(argv))

    if config.DEBUG:
        setup_logging(level="DEBUG")

    try:
        check_startup_config(config)
    except ConfigurationError as e:
        logger.error(e.message)
        return 1

    uvicorn.run(
        create_app(config),
        host=config.HOST,
        port=config.PORT,
        log_level="debug" if config.DEBUG else "info"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
