"""
Structured logging for the SDK using structlog.

Every SDK module logs through ``logging.getLogger(__name__)``. Applications
that want structured output call ``setup_logging`` once; it attaches a
structlog formatter to the ``aa_sdk`` logger only and leaves the root logger
to the host application.
"""

import logging
import sys
from typing import Optional, TextIO

import structlog

from .config import settings


SDK_LOGGER = "aa_sdk"
NOISY_LOGGERS = ("httpcore", "httpx")


def _processors(json_output: bool) -> list:
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_output:
        processors.append(structlog.processors.format_exc_info)
    return processors


def setup_logging(
    log_level: Optional[str] = None,
    *,
    json_output: Optional[bool] = None,
    stream: TextIO = sys.stdout,
) -> None:
    """Route ``aa_sdk`` log records through structlog.

    Args:
        log_level: Override log level (default: from settings.log_level)
        json_output: JSON lines when true, colored console output when false
            (default: console at DEBUG, JSON otherwise)
        stream: Destination of the rendered records
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    if json_output is None:
        json_output = level != logging.DEBUG

    shared = _processors(json_output)
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    sdk_logger = logging.getLogger(SDK_LOGGER)
    sdk_logger.handlers.clear()
    sdk_logger.addHandler(handler)
    sdk_logger.setLevel(level)
    sdk_logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
