"""
Logging context management using contextvars.

This module provides parse-aware context that automatically attaches to all
log entries. Context is propagated through the call stack without explicit
parameter passing, so rule callbacks that log get the parse id and document
name for free.

Design choice: contextvars
- Thread-safe and asyncio-compatible
- No need to pass context through every rule callback
- Clean integration with structlog processors
"""

import uuid
from contextvars import ContextVar, Token
from dataclasses import asdict, dataclass
from typing import Any

import structlog


def new_parse_id() -> str:
    """Generate a short parse ID (12 hex chars)."""
    return uuid.uuid4().hex[:12]


@dataclass
class LogContext:
    """
    Parse context attached to all log entries.

    Core identifiers:
        parse_id: Unique id for one parse
        document: Document identifier (file name or "<string>")

    Tracing (for nested timing blocks):
        span_id: Current span identifier
        parent_span_id: Parent span for nested operations

    Step context:
        step: Current processing step name
    """

    parse_id: str | None = None
    document: str | None = None

    span_id: str | None = None
    parent_span_id: str | None = None

    step: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def merge(self, **kwargs) -> "LogContext":
        """Create new context with merged values."""
        current = asdict(self)
        current.update({k: v for k, v in kwargs.items() if v is not None and k in current})
        return LogContext(**current)


_log_context: ContextVar[LogContext] = ContextVar("treebind_log_context")  # noqa: B039


def get_context() -> LogContext:
    """Get the current log context."""
    return _log_context.get(LogContext())


def set_context(
    parse_id: str | None = None,
    document: str | None = None,
    step: str | None = None,
    span_id: str | None = None,
    parent_span_id: str | None = None,
) -> LogContext:
    """
    Set the current log context.

    This replaces the current context. Use bind_context() to add to existing.
    """
    ctx = LogContext(
        parse_id=parse_id,
        document=document,
        step=step,
        span_id=span_id,
        parent_span_id=parent_span_id,
    )
    _log_context.set(ctx)
    return ctx


def bind_context(**kwargs) -> LogContext:
    """Merge values into the current context."""
    updated = get_context().merge(**kwargs)
    _log_context.set(updated)
    return updated


def clear_context() -> None:
    """Clear the current context (reset to empty)."""
    _log_context.set(LogContext())


class ContextToken:
    """Token for restoring context after a scoped operation."""

    def __init__(self, token: Token):
        self._token = token

    def restore(self) -> None:
        """Restore the previous context."""
        _log_context.reset(self._token)


def push_context(**kwargs) -> ContextToken:
    """
    Push new context values, returning a token to restore later.

    Usage:
        token = push_context(parse_id=new_parse_id(), document="pom.xml")
        try:
            engine.replay(events)
        finally:
            token.restore()
    """
    updated = get_context().merge(**kwargs)
    return ContextToken(_log_context.set(updated))


def add_context_processor(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Structlog processor that adds parse context to every log entry.

    Registered in configure_logging(); existing keys win.
    """
    for key, value in get_context().to_dict().items():
        if key not in event_dict:
            event_dict[key] = value
    return event_dict


def get_logger(name: str | None = None) -> Any:
    """
    Get a structured logger.

    Args:
        name: Logger name (typically __name__)
    """
    return structlog.get_logger(name)
