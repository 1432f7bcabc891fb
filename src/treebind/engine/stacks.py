"""
Context stacks shared by the rules of one parse.

- **Object stack**: the objects under construction; the primary way rules
  hand results to enclosing and sibling rules.
- **Named stacks**: general-purpose scoped stores keyed by string.
- **Parameter stack**: ``ParamBuffer`` objects of the call-parameter protocol.

The stacks do no policing of their own beyond refusing to pop what is not
there; scope discipline (who may pop what, when) is enforced by the
dispatch engine.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from treebind.core.errors import EmptyStackError
from treebind.engine.params import ParamBuffer

OBJECT_STACK = "objects"
PARAM_STACK = "params"


class Stack:
    """A list-backed LIFO with errors that name the stack."""

    __slots__ = ("name", "_items")

    def __init__(self, name: str) -> None:
        self.name = name
        self._items: list[Any] = []

    def push(self, item: Any) -> None:
        self._items.append(item)

    def pop(self) -> Any:
        if not self._items:
            raise EmptyStackError(self.name)
        return self._items.pop()

    def peek(self, n: int = 0) -> Any:
        """Item ``n`` places below the top (0 is the top)."""
        if n < 0 or n >= len(self._items):
            raise EmptyStackError(
                self.name,
                f"Stack '{self.name}' has {len(self._items)} item(s); cannot peek at {n}",
            )
        return self._items[-1 - n]

    def bottom(self) -> Any:
        if not self._items:
            raise EmptyStackError(self.name)
        return self._items[0]

    def truncate(self, depth: int) -> list[Any]:
        """Drop everything above ``depth``; returns the dropped items, top first."""
        dropped = self._items[depth:]
        del self._items[depth:]
        dropped.reverse()
        return dropped

    def clear(self) -> None:
        self._items.clear()

    @property
    def depth(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[Any]:
        """Iterate top first."""
        return reversed(self._items)

    def __repr__(self) -> str:
        return f"Stack({self.name!r}, depth={len(self._items)})"


class ContextStacks:
    """The family of stacks used during one parse."""

    def __init__(self) -> None:
        self.objects = Stack(OBJECT_STACK)
        self.params = Stack(PARAM_STACK)
        self._named: dict[str, Stack] = {}

    def named(self, key: str) -> Stack:
        stack = self._named.get(key)
        if stack is None:
            stack = self._named[key] = Stack(key)
        return stack

    def has_named(self, key: str) -> bool:
        return bool(self._named.get(key))

    def named_keys(self) -> list[str]:
        return [key for key, stack in self._named.items() if stack]

    def top_params(self) -> ParamBuffer:
        if not self.params:
            raise EmptyStackError(PARAM_STACK, "No parameter buffer is open")
        return self.params.peek()

    def clear(self) -> None:
        self.objects.clear()
        self.params.clear()
        self._named.clear()

    def depths(self) -> dict[str, int]:
        result = {OBJECT_STACK: self.objects.depth, PARAM_STACK: self.params.depth}
        for key, stack in self._named.items():
            result[f"named:{key}"] = stack.depth
        return result
