"""
Shared pytest fixtures for treebind tests.

This module provides:
- A ``Recorder`` rule that logs every callback it receives
- Engine / table factories with strict stack checking
- Small domain classes used as binding targets

Usage:
    def test_something(make_engine, recorder_factory):
        table = RuleTable()
        ...
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from pathlib import Path

import pytest

# Ensure treebind package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from treebind.core.settings import BinderSettings
from treebind.engine import DispatchEngine, Rule, RuleTable


# =============================================================================
# Recording rules
# =============================================================================


class Recorder(Rule):
    """Appends ``(label, phase, path, detail)`` tuples to a shared log."""

    def __init__(self, label: str, log: list):
        self.label = label
        self.log = log

    def begin(self, context, path, attributes: Mapping[str, str]) -> None:
        self.log.append((self.label, "begin", context.match_path, dict(attributes)))

    def body(self, context, path, text: str) -> None:
        self.log.append((self.label, "body", context.match_path, text))

    def end(self, context, path) -> None:
        self.log.append((self.label, "end", context.match_path, context.aborting))


class Failing(Rule):
    """Raises in the named phase."""

    def __init__(self, phase: str, exc: Exception | None = None):
        self.phase = phase
        self.exc = exc or ValueError(f"boom in {phase}")

    def begin(self, context, path, attributes):
        if self.phase == "begin":
            raise self.exc

    def body(self, context, path, text):
        if self.phase == "body":
            raise self.exc

    def end(self, context, path):
        if self.phase == "end":
            raise self.exc


class Pusher(Rule):
    """Pushes an object on begin and never pops it."""

    def __init__(self, obj=None):
        self.obj = obj if obj is not None else object()

    def begin(self, context, path, attributes):
        context.push_object(self.obj)


# =============================================================================
# Domain targets
# =============================================================================


class Server:
    def __init__(self):
        self.host = None
        self.port = None
        self.max_connections = None
        self.listeners = []
        self.parent = None
        self.calls = []

    def add_listener(self, listener):
        self.listeners.append(listener)

    def listen(self, *args):
        self.calls.append(args)

    def set_parent(self, parent):
        self.parent = parent


class Listener:
    def __init__(self):
        self.name = None
        self.kind = None


class Config:
    def __init__(self):
        self.servers = []
        self.everything = []

    def add_server(self, server):
        self.servers.append(server)

    def register(self, obj):
        self.everything.append(obj)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def events_log() -> list:
    return []


@pytest.fixture
def recorder_factory(events_log):
    def factory(label: str) -> Recorder:
        return Recorder(label, events_log)

    return factory


@pytest.fixture
def strict_settings() -> BinderSettings:
    return BinderSettings(stack_check="strict", _env_file=None)


@pytest.fixture
def table() -> RuleTable:
    return RuleTable()


@pytest.fixture
def make_engine(table, strict_settings):
    """Build a DispatchEngine over the ``table`` fixture."""

    def factory(**kwargs) -> DispatchEngine:
        kwargs.setdefault("settings", strict_settings)
        return DispatchEngine(table, **kwargs)

    return factory
