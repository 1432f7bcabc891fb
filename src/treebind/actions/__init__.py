"""
Stock actions.

Each action is a ``Rule`` that follows the engine's stack and parameter
protocols:

    create.py       ObjectCreateAction
    properties.py   SetPropertiesAction, SetPropertyAction, BeanPropertySetterAction
    linking.py      SetNextAction, SetTopAction, SetRootAction
    calls.py        CallMethodAction, CallParamAction, ObjectParamAction, PathCallParamAction
"""

from treebind.actions.calls import (
    CallMethodAction,
    CallParamAction,
    ObjectParamAction,
    PathCallParamAction,
)
from treebind.actions.create import ObjectCreateAction, resolve_factory
from treebind.actions.linking import SetNextAction, SetRootAction, SetTopAction
from treebind.actions.properties import (
    BeanPropertySetterAction,
    SetPropertiesAction,
    SetPropertyAction,
)

__all__ = [
    "BeanPropertySetterAction",
    "CallMethodAction",
    "CallParamAction",
    "ObjectCreateAction",
    "ObjectParamAction",
    "PathCallParamAction",
    "SetNextAction",
    "SetPropertiesAction",
    "SetPropertyAction",
    "SetRootAction",
    "SetTopAction",
    "resolve_factory",
]
