"""
Rule base class.

A rule is a stateless strategy: the same instance may be active at several
open elements at once when a document recurses (``section/**`` inside
``section``). Anything a rule needs to remember between ``begin`` and
``end`` goes in ``context.activation.state``, which is private to one
activation, never in instance attributes.

Callbacks
=========

- ``begin(context, path, attributes)`` when the matched element opens
- ``body(context, path, text)`` when it closes, with the element's own text
- ``end(context, path)`` right after ``body``

All three are no-ops by default; override what you need.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from treebind.engine.dispatcher import DigestContext
    from treebind.engine.path import Path


class Rule:
    """Base class for everything registered in a ``RuleTable``."""

    #: Set on rules that intentionally leave a net push on the object stack
    #: (the stack-balance check skips them).
    leaves_net_push: ClassVar[bool] = False

    def begin(self, context: "DigestContext", path: "Path", attributes: Mapping[str, str]) -> None:
        pass

    def body(self, context: "DigestContext", path: "Path", text: str) -> None:
        pass

    def end(self, context: "DigestContext", path: "Path") -> None:
        pass

    @property
    def name(self) -> str:
        return type(self).__name__

    def __repr__(self) -> str:
        return f"{self.name}()"
