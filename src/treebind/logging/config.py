"""
Logging configuration.

Provides a single entry point for configuring structured logging.

Configuration is read from arguments, then from BinderSettings, which in
turn reads the environment:
- TREEBIND_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR (default: WARNING)
- TREEBIND_LOG_FORMAT: json | console (default: console)

Usage:
    from treebind.logging import configure_logging
    configure_logging()

    # Or with explicit settings
    configure_logging(level="DEBUG", format="json")
"""

import logging
import sys
from typing import Literal

import structlog
from structlog.types import Processor

from treebind.core.settings import BinderSettings
from treebind.logging.context import add_context_processor

_configured = False


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | str | None = None,
    format: Literal["json", "console"] | str | None = None,
    force: bool = False,
    settings: BinderSettings | None = None,
) -> None:
    """
    Configure structured logging for the application.

    Should be called once at application startup (CLI entry, service start).
    Subsequent calls are no-ops unless force=True. Library code never calls
    this; a binder used inside another application logs through whatever
    structlog configuration that application set up.

    Args:
        level: Log level (overrides settings.log_level)
        format: Output format (overrides settings.log_format)
        force: Reconfigure even if already configured
        settings: Source of the defaults; a fresh BinderSettings when omitted
    """
    global _configured

    if _configured and not force:
        return

    if level is None or format is None:
        settings = settings or BinderSettings()
        level = level or settings.log_level
        format = format or settings.log_format
    log_level = level.upper()
    log_format = format.lower()

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_context_processor,
        structlog.processors.format_exc_info,
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level),
        force=True,
    )
    logging.getLogger("treebind").setLevel(getattr(logging, log_level))

    _configured = True


def is_debug_enabled() -> bool:
    """Check if DEBUG level logging is enabled."""
    return logging.getLogger("treebind").isEnabledFor(logging.DEBUG)


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured
