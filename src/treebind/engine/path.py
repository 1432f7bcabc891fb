"""Element path tracking.

The path is a pure function of the open/close events seen so far: one
``PathSegment`` per open element, root first. The tracker has no idea that
rules exist.
"""

from __future__ import annotations

from typing import NamedTuple

from treebind.core.errors import ImbalanceError


class PathSegment(NamedTuple):
    """One open element: namespace URI ("" for none) and local name."""

    namespace: str
    name: str

    def __str__(self) -> str:
        if self.namespace:
            return f"{{{self.namespace}}}{self.name}"
        return self.name


Path = tuple[PathSegment, ...]


def format_path(path: Path) -> str:
    """Slash-joined local names, the form patterns are written in."""
    return "/".join(segment.name for segment in path)


class PathTracker:
    """Maintains the current absolute element path."""

    def __init__(self) -> None:
        self._segments: list[PathSegment] = []

    @property
    def depth(self) -> int:
        return len(self._segments)

    @property
    def current(self) -> Path:
        return tuple(self._segments)

    @property
    def match_path(self) -> str:
        return format_path(self.current)

    def open(self, namespace: str | None, name: str) -> Path:
        """Append a segment and return the new path."""
        self._segments.append(PathSegment(namespace or "", name))
        return self.current

    def close(self) -> Path:
        """Remove the last segment and return the path as it was *before* removal."""
        if not self._segments:
            raise ImbalanceError("close() called with an empty path").with_context(depth=0)
        closed = self.current
        self._segments.pop()
        return closed

    def clear(self) -> None:
        self._segments.clear()

    def __len__(self) -> int:
        return len(self._segments)

    def __repr__(self) -> str:
        return f"PathTracker({self.match_path!r})"
