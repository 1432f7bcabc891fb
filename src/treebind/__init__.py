"""
treebind - rule-driven binding of XML documents onto Python objects.

Register rules against path patterns, feed a document through the engine,
and get back the object graph the rules built.

Quick start::

    from treebind import Binder
    from treebind.actions import ObjectCreateAction, SetNextAction, SetPropertiesAction

    binder = Binder()
    binder.add_rule("catalog", ObjectCreateAction(Catalog))
    binder.add_rule("catalog/book", ObjectCreateAction(Book))
    binder.add_rule("catalog/book", SetPropertiesAction())
    binder.add_rule("catalog/book", SetNextAction("add_book"))
    catalog = binder.parse("catalog.xml")
"""

from treebind.binder import Binder
from treebind.core.errors import (
    ConfigurationError,
    ImbalanceError,
    RuleCallbackError,
    StackImbalanceError,
    TreebindError,
    UnterminatedDocumentError,
)
from treebind.core.settings import BinderSettings
from treebind.engine import UNSET, DigestContext, DispatchEngine, Pattern, Rule, RuleTable

__version__ = "0.1.0"

__all__ = [
    "Binder",
    "BinderSettings",
    "ConfigurationError",
    "DigestContext",
    "DispatchEngine",
    "ImbalanceError",
    "Pattern",
    "Rule",
    "RuleCallbackError",
    "RuleTable",
    "StackImbalanceError",
    "TreebindError",
    "UNSET",
    "UnterminatedDocumentError",
    "__version__",
]
