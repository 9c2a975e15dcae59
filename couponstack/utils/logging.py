# couponstack/utils/logging.py
"""structlog over stdlib logging.

Services log key-value events (``coupon_applied``, ``coupon_skipped``,
``order_placed``); the request hook in ``create_app`` binds the path, method,
client ip and cart id so every event of a request carries them.
"""

import logging
import os
import sys
from typing import Any

import structlog


def get_log_level(environment: str | None = None) -> str:
    """LOG_LEVEL wins; otherwise tests are quiet and development logs engine skips."""
    env = (environment or os.getenv("ENVIRONMENT") or os.getenv("FLASK_ENV") or "development").lower()

    level_map = {
        "production": "INFO",
        "staging": "INFO",
        "development": "DEBUG",
        "test": "WARNING",
    }

    return os.getenv("LOG_LEVEL", level_map.get(env, "INFO")).upper()


def setup_stdlib_logging(log_level: str) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    # SQL echo and the request access log stay out of the event stream
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def setup_structlog(environment: str) -> None:
    """JSON lines for production and staging, plain console text elsewhere."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if environment in ["production", "staging"]:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(environment: str | None = None, log_level: str | None = None) -> None:
    env = (environment or os.getenv("ENVIRONMENT") or "development").lower()
    setup_stdlib_logging(log_level or get_log_level(env))
    setup_structlog(env)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def add_context(**kwargs: Any) -> None:
    """Bind fields to every event logged until ``clear_context()``."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
