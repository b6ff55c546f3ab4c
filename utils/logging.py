"""
Logging Configuration Module

Console logging for the solver. Human-readable coloured lines by default,
one JSON object per line when LOG_JSON is set. Records that carry a
``task_id`` or ``slot`` (see log_solve_outcome) keep them as fields in
JSON mode.

Usage:
    from utils.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Browser pool ready")
    logger.debug("Attempt failed", extra={"task_id": task_id, "slot": 0})
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}
RESET = "\033[0m"

# Extra record attributes promoted to top-level JSON fields
CONTEXT_FIELDS = ("task_id", "slot")

# Chatty third-party loggers held at WARNING
NOISY_LOGGERS = ("asyncio", "httpx", "httpcore", "playwright", "uvicorn.access")


# =============================================================================
# Formatters
# =============================================================================

class ColoredFormatter(logging.Formatter):
    """Pads and colours the level name; the record itself is left untouched."""

    def formatMessage(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelno, "")
        values = dict(record.__dict__, levelname=f"{color}{record.levelname:8}{RESET}")
        return self._style._fmt % values


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry)


# =============================================================================
# Setup
# =============================================================================

def setup_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None
) -> None:
    """
    Install the console handler on the root logger.

    Args:
        level: Log level name; defaults to DEBUG when settings.DEBUG is on,
               INFO otherwise.
        json_format: Emit JSON lines; defaults to settings.LOG_JSON.
    """
    from config.settings import settings

    level = level or ("DEBUG" if settings.DEBUG else "INFO")
    if json_format is None:
        json_format = settings.LOG_JSON
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ColoredFormatter(
            fmt="%(asctime)s │ %(levelname)s │ %(name)s │ %(message)s",
            datefmt="%H:%M:%S"
        ))

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


# =============================================================================
# Solve Outcomes
# =============================================================================

def log_solve_outcome(
    task_id: str,
    slot: int,
    success: bool,
    elapsed: float,
    reason: Optional[str] = None
) -> None:
    """
    Write the one-line summary of a finished task.

    Successes go out at INFO, failures at WARNING with their reason.
    """
    marker = "✅" if success else "❌"
    message = f"{marker} Browser {slot} | task {task_id} | {elapsed:.3f}s"
    if reason:
        message += f" | {reason}"

    level = logging.INFO if success else logging.WARNING
    get_logger("solver").log(level, message, extra={"task_id": task_id, "slot": slot})
