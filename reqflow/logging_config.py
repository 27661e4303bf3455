"""
logging_config.py — Centralized Logging Configuration for reqflow

Sets up Loguru as the single logging backend. Intercepts Python's stdlib
logging module so getLogger() calls in services (and in SQLAlchemy,
uvicorn, alembic) route through Loguru with the same format and the
request ID bound by the middleware in main.py.

Business Rules:
- All logs go through Loguru (no print())
- JSON lines in production for machine parsing
- Human-readable, colourised format in development
- LOG_LEVEL env var overrides the configured level

Called by: reqflow/main.py (on startup)
Depends on: reqflow/config.py (app_env, log_level)
"""

import logging
import os
import sys

from loguru import logger

from .config import settings


def setup_logging() -> None:
    """Configure Loguru and intercept stdlib logging.

    Call once at app startup, before anything else logs.
    """
    logger.remove()

    log_level = os.getenv("LOG_LEVEL", settings.log_level).upper()
    is_production = os.getenv("APP_ENV", settings.app_env).lower() == "production"

    if is_production:
        logger.add(
            sys.stdout,
            level=log_level,
            format="{message}",
            serialize=True,
        )
    else:
        logger.add(
            sys.stdout,
            level=log_level,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "{extra[request_id]} | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{message}"
            ),
            colorize=True,
        )

    # Default for records logged outside a request
    logger.configure(extra={"request_id": "-"})

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    for noisy in ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.info("Logging configured", level=log_level, production=is_production)


class _InterceptHandler(logging.Handler):
    """Route stdlib logging records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip frames from stdlib logging internals
        frame, depth = logging.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )
