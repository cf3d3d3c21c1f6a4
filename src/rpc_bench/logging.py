"""
Structured logging setup shared by the runner and the library modules.
"""

import logging
import sys

import structlog


def configure_logging(level: str = "INFO", json_output: bool = False):
    """
    Configure structlog on top of the stdlib logging module.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ...)
        json_output: Render events as JSON lines instead of console text
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
