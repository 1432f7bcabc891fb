"""
treebind logging - structured, parse-aware logging.

This module provides:
- Structured logging with structlog
- Parse context propagation via contextvars
- Timing utilities for performance tracking
- Environment-based configuration

Usage:
    from treebind.logging import get_logger, configure_logging, log_step

    # Configure once at startup (the CLI does this for you)
    configure_logging()

    log = get_logger(__name__)

    with log_step("binder.parse", document="web.xml"):
        binder.parse("web.xml")
"""

from treebind.logging.config import configure_logging, is_configured, is_debug_enabled
from treebind.logging.context import (
    LogContext,
    bind_context,
    clear_context,
    get_context,
    get_logger,
    new_parse_id,
    push_context,
    set_context,
)
from treebind.logging.timing import TimingResult, log_step

__all__ = [
    # Configuration
    "configure_logging",
    "is_configured",
    "is_debug_enabled",
    # Context
    "LogContext",
    "get_logger",
    "set_context",
    "bind_context",
    "clear_context",
    "get_context",
    "push_context",
    "new_parse_id",
    # Timing
    "TimingResult",
    "log_step",
]
