"""
Structured logging.

All logging goes through structlog, rendered by a stdlib handler so that
library loggers and structlog loggers share one output stream.
"""

import logging
import sys
from typing import Any, List, Optional, TextIO

import structlog


def setup_logging(level: str = "INFO", fmt: str = "console",
                  stream: Optional[TextIO] = None):
    """Configure structlog + stdlib logging for the whole process.

    `stream` defaults to stderr. The isolated worker relies on that:
    its stdout carries only the result document.
    """
    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: Any
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def setup_logging_from_config(config):
    """Apply the log_level / log_format of an EngineConfig."""
    setup_logging(level=config.log_level, fmt=config.log_format)
