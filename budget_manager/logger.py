"""
Structured Logging

Every balance movement and lifecycle step is logged as a structured event
(event name + key/value pairs) through structlog on top of stdlib logging.

Modules get their logger with `structlog.get_logger(__name__)`;
`configure_logging()` is called once by the application factory.
"""

import logging
import sys
from typing import Optional

import structlog

from budget_manager.config import get_settings


def configure_logging(
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Log level name. Defaults to the configured log_level.
        json_output: Render JSON lines instead of console output.
                     Defaults to the configured log_json.
    """
    app_settings = get_settings().app
    level = level or app_settings.log_level
    if json_output is None:
        json_output = app_settings.log_json

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
