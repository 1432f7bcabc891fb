"""Actions that connect objects on the stack to each other."""

from __future__ import annotations

from typing import Any

from treebind.engine.rule import Rule
from treebind.logging import get_logger

log = get_logger(__name__)


def _call(target: Any, method: str, argument: Any) -> Any:
    return getattr(target, method)(argument)


class SetNextAction(Rule):
    """On close, call ``parent.<method>(child)`` (child = top, parent = next below)."""

    def __init__(self, method: str) -> None:
        self.method = method

    def end(self, context, path) -> None:
        if context.aborting:
            return
        child = context.peek_object(0)
        parent = context.peek_object(1)
        log.debug("action.set_next", path=context.match_path, method=self.method)
        _call(parent, self.method, child)

    def __repr__(self) -> str:
        return f"SetNextAction({self.method!r})"


class SetTopAction(Rule):
    """On close, call ``child.<method>(parent)``."""

    def __init__(self, method: str) -> None:
        self.method = method

    def end(self, context, path) -> None:
        if context.aborting:
            return
        child = context.peek_object(0)
        parent = context.peek_object(1)
        log.debug("action.set_top", path=context.match_path, method=self.method)
        _call(child, self.method, parent)

    def __repr__(self) -> str:
        return f"SetTopAction({self.method!r})"


class SetRootAction(Rule):
    """On close, call ``root.<method>(child)``."""

    def __init__(self, method: str) -> None:
        self.method = method

    def end(self, context, path) -> None:
        if context.aborting:
            return
        child = context.peek_object(0)
        log.debug("action.set_root", path=context.match_path, method=self.method)
        _call(context.root, self.method, child)

    def __repr__(self) -> str:
        return f"SetRootAction({self.method!r})"
