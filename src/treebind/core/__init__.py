"""treebind core -- errors and settings shared by every layer.

Architecture::

    errors.py      Structured error hierarchy (TreebindError, ImbalanceError, ...)
    settings.py    BinderSettings (pydantic-settings, TREEBIND_ env prefix)
"""

from treebind.core.errors import (
    ConfigurationError,
    DocumentParseError,
    EmptyStackError,
    ErrorCategory,
    ErrorContext,
    ImbalanceError,
    MissingPropertyError,
    RuleCallbackError,
    StackImbalanceError,
    TreebindError,
    UnterminatedDocumentError,
)
from treebind.core.settings import BinderSettings

__all__ = [
    "BinderSettings",
    "ConfigurationError",
    "DocumentParseError",
    "EmptyStackError",
    "ErrorCategory",
    "ErrorContext",
    "ImbalanceError",
    "MissingPropertyError",
    "RuleCallbackError",
    "StackImbalanceError",
    "TreebindError",
    "UnterminatedDocumentError",
]
