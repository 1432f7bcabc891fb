"""
treebind engine - rule matching and stack dispatch.

Architecture::

    path.py         PathTracker, PathSegment
    pattern.py      Pattern parsing, matching, specificity
    table.py        RuleTable (ordered multimap, frozen during parse)
    matcher.py      PatternMatcher (ordered, cached lookups)
    stacks.py       ContextStacks (objects, named, params)
    params.py       ParamBuffer, UNSET
    rule.py         Rule base class
    activation.py   Activation records
    events.py       Event values for replay
    dispatcher.py   DispatchEngine, DigestContext
"""

from treebind.engine.activation import Activation, ActivationState
from treebind.engine.dispatcher import (
    DigestContext,
    DispatchEngine,
    DispatchListener,
    DispatchRecord,
    EngineState,
)
from treebind.engine.events import Event, EventType
from treebind.engine.matcher import PatternMatcher
from treebind.engine.params import UNSET, ParamBuffer
from treebind.engine.path import Path, PathSegment, PathTracker, format_path
from treebind.engine.pattern import Pattern, PatternSegment
from treebind.engine.rule import Rule
from treebind.engine.stacks import ContextStacks, Stack
from treebind.engine.table import RuleEntry, RuleTable

__all__ = [
    "Activation",
    "ActivationState",
    "ContextStacks",
    "DigestContext",
    "DispatchEngine",
    "DispatchListener",
    "DispatchRecord",
    "EngineState",
    "Event",
    "EventType",
    "ParamBuffer",
    "Path",
    "PathSegment",
    "PathTracker",
    "Pattern",
    "PatternMatcher",
    "PatternSegment",
    "Rule",
    "RuleEntry",
    "RuleTable",
    "Stack",
    "UNSET",
    "format_path",
]
