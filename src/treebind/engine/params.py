"""
Call-parameter buffers.

A collector rule (``CallMethodAction``) allocates a ``ParamBuffer`` when its
element opens; rules on descendant (or the same) elements write single slots
into the *nearest enclosing* buffer; the collector consumes the buffer when
its element closes and makes one downstream call with the values in slot
order. Slots nobody wrote come back as ``UNSET`` so the call target decides
what a missing argument means.
"""

from __future__ import annotations

from typing import Any

from treebind.core.errors import ConfigurationError


class _Unset:
    """Sentinel for a parameter slot that was never written."""

    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


class ParamBuffer:
    """
    Fixed- or variable-length parameter slots.

    ``size=None`` makes the buffer variable length: writes past the end grow
    it, padding with ``UNSET``.
    """

    __slots__ = ("_slots", "size", "owner")

    def __init__(self, size: int | None, owner: object | None = None) -> None:
        if size is not None and size < 0:
            raise ConfigurationError(f"Parameter count must be >= 0, got {size}")
        self.size = size
        self.owner = owner
        self._slots: list[Any] = [UNSET] * (size or 0)

    @property
    def variable(self) -> bool:
        return self.size is None

    def next_free(self) -> int:
        for i, value in enumerate(self._slots):
            if value is UNSET:
                return i
        return len(self._slots)

    def set(self, index: int | None, value: Any) -> int:
        """Write a slot; ``index=None`` means the next free slot. Returns the slot used."""
        slot = self.next_free() if index is None else index
        if slot < 0:
            raise IndexError(f"Parameter index must be >= 0, got {slot}")
        if self.size is not None and slot >= self.size:
            raise IndexError(f"Parameter index {slot} out of range for {self.size} slot(s)")
        if slot >= len(self._slots):
            self._slots.extend([UNSET] * (slot + 1 - len(self._slots)))
        self._slots[slot] = value
        return slot

    def get(self, index: int) -> Any:
        if index < len(self._slots):
            return self._slots[index]
        return UNSET

    def values(self) -> list[Any]:
        return list(self._slots)

    @property
    def written(self) -> int:
        return sum(1 for v in self._slots if v is not UNSET)

    def __len__(self) -> int:
        return len(self._slots)

    def __repr__(self) -> str:
        return f"ParamBuffer({self._slots!r})"
