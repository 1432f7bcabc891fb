"""
Structured error types for treebind.

Every error raised by the engine, the stock actions or the SAX adapter
derives from ``TreebindError``. Instead of bare exceptions that lose the
position in the document, each error carries:

- **Category:** What kind of failure (protocol, config, document, rule)
- **Context:** Path, pattern, rule and callback phase at the point of failure
- **Cause:** Chained underlying exception for root cause analysis

Manifesto:
    - **Typed Error Hierarchy:** One class per failure mode the engine knows
    - **Fatal by Default:** Nothing at this layer is retried
    - **Rich Context:** Errors say *where* in the document they happened
    - **Error Chaining:** Rule exceptions are wrapped, never replaced

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                       TreebindError                           │
        │            (category, context, cause)                         │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  ImbalanceError        ConfigurationError   RuleCallbackError │
        │  (PROTOCOL)            (CONFIG)             (RULE)            │
        │       │                      │                                │
        │  StackImbalanceError   MissingPropertyError                   │
        │  EmptyStackError                                              │
        │                                                               │
        │  UnterminatedDocumentError   DocumentParseError               │
        │  (DOCUMENT)                  (DOCUMENT)                       │
        └──────────────────────────────────────────────────────────────┘

Examples:
    Wrapping a failure inside a rule callback:

    >>> try:
    ...     raise ValueError("bad port")
    ... except ValueError as e:
    ...     err = RuleCallbackError("begin failed", cause=e).with_context(
    ...         path="server/port", phase="begin")
    >>> err.context.path
    'server/port'
    >>> err.category
    <ErrorCategory.RULE: 'RULE'>

Tags:
    error-handling, exception-hierarchy, error-context, treebind
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification.

    Attributes:
        PROTOCOL: Event source or engine contract violations
        CONFIG: Malformed patterns, late registration, missing properties
        DOCUMENT: Problems with the document itself
        RULE: Failures raised from inside rule callbacks
        INTERNAL: Bugs, unexpected state
    """

    PROTOCOL = "PROTOCOL"       # Unbalanced events, empty stacks
    CONFIG = "CONFIG"           # Patterns, registration, property mapping
    DOCUMENT = "DOCUMENT"       # Malformed or unterminated input
    RULE = "RULE"               # Errors raised by rule callbacks
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata describing where an error happened.

    Attributes:
        path: Slash-joined element path at the point of failure
        pattern: Source text of the pattern whose rule failed
        rule: Rule name (usually the class name)
        phase: Callback phase ("begin", "body", "end")
        depth: Path depth at the point of failure
        document: Document identifier (file name, "<string>", ...)
        metadata: Additional key-value pairs
    """

    path: str | None = None
    pattern: str | None = None
    rule: str | None = None
    phase: str | None = None
    depth: int | None = None
    document: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["path", "pattern", "rule", "phase", "depth", "document"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TreebindError(Exception):
    """
    Base exception for all treebind errors.

    Subclasses set ``default_category`` so that callers can route errors
    without isinstance chains.

    Examples:
        >>> error = TreebindError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(path="a/b").context.path
        'a/b'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TreebindError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ImbalanceError("close without open").with_context(depth=0)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __str__(self) -> str:
        where = self.context.path
        if where:
            return f"{self.message} (at {where})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# PROTOCOL ERRORS
# =============================================================================


class ImbalanceError(TreebindError):
    """Event source or engine contract violation (unbalanced open/close)."""

    default_category = ErrorCategory.PROTOCOL


class StackImbalanceError(ImbalanceError):
    """A rule left the object stack at a different depth than it found it."""

    def __init__(self, message: str, *, expected: int, actual: int, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.expected = expected
        self.actual = actual


class EmptyStackError(ImbalanceError):
    """Pop or peek on an empty (or too shallow) stack."""

    def __init__(self, stack: str, message: str | None = None, **kwargs: Any):
        super().__init__(message or f"Stack '{stack}' is empty", **kwargs)
        self.stack = stack


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(TreebindError):
    """Malformed pattern, or rule registration after the table was frozen."""

    default_category = ErrorCategory.CONFIG


class MissingPropertyError(ConfigurationError):
    """Target object has no property for a mapped attribute (strict mode)."""

    def __init__(self, target: Any, name: str, message: str | None = None, **kwargs: Any):
        super().__init__(
            message or f"{type(target).__name__} has no property '{name}'",
            **kwargs,
        )
        self.target_type = type(target).__name__
        self.name = name


# =============================================================================
# DOCUMENT ERRORS
# =============================================================================


class UnterminatedDocumentError(TreebindError):
    """Document ended while elements were still open."""

    default_category = ErrorCategory.DOCUMENT

    def __init__(self, message: str, *, open_path: tuple[str, ...] = (), **kwargs: Any):
        super().__init__(message, **kwargs)
        self.open_path = open_path


class DocumentParseError(TreebindError):
    """The underlying parser rejected the document."""

    default_category = ErrorCategory.DOCUMENT

    def __init__(
        self,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.line = line
        self.column = column


# =============================================================================
# RULE ERRORS
# =============================================================================


class RuleCallbackError(TreebindError):
    """An exception escaped a rule's begin, body or end callback."""

    default_category = ErrorCategory.RULE


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TreebindError",
    # Protocol
    "ImbalanceError",
    "StackImbalanceError",
    "EmptyStackError",
    # Config
    "ConfigurationError",
    "MissingPropertyError",
    # Document
    "UnterminatedDocumentError",
    "DocumentParseError",
    # Rule
    "RuleCallbackError",
]
