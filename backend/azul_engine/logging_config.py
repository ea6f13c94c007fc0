"""
Structured logging configuration for the engine.
"""
import structlog
import logging
import sys
from typing import Optional

from .config import ENVIRONMENT


def configure_logging(environment: str = ENVIRONMENT):
    """Configure structured logging based on environment."""

    # Configure standard logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.INFO if environment == "production" else logging.DEBUG,
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if environment == "production" else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.INFO if environment == "production" else logging.DEBUG
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger()


def get_logger(name: Optional[str] = None):
    """Get a configured logger instance."""
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()


def bind_match_context(**context):
    """Attach match-level context (e.g. match_id) to every log line in this context."""
    structlog.contextvars.bind_contextvars(**context)


def clear_match_context():
    """Drop match-level context bound with bind_match_context."""
    structlog.contextvars.clear_contextvars()
