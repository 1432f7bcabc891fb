"""
Path patterns: parsing, matching and specificity.

Syntax
======

    pattern   := ["/"] segment ("/" segment)* ["/**"]
    segment   := ["{" [uri] "}"] (name | "*")

- A leading ``/`` roots the pattern at the document element. Without it the
  pattern matches the *suffix* of the current path (``b/c`` matches
  ``a/b/c`` and ``x/b/c``).
- ``*`` accepts exactly one element of any name.
- A trailing ``**`` accepts zero or more further elements, so ``a/**``
  matches ``a``, ``a/b`` and ``a/b/c``.
- ``{uri}name`` requires the element's namespace to be ``uri``; ``{}name``
  requires no namespace; a bare ``name`` accepts any namespace.

Specificity
===========

When several patterns match one path the more specific pattern dispatches
first. ``Pattern.specificity`` is a sort key (smaller sorts first):

1. exact patterns (rooted, wildcard-free) before everything else
2. fewer wildcards (each ``*``, a trailing ``**`` and the implicit leading
   any-prefix of an unrooted pattern count one each)
3. more literal segments
4. more namespace-qualified segments

Registration order breaks any remaining tie; that part lives in the
matcher because a pattern does not know its own registration index.
"""

from __future__ import annotations

from dataclasses import dataclass

from treebind.core.errors import ConfigurationError
from treebind.engine.path import Path, PathSegment

WILDCARD = "*"
ANY_DEPTH = "**"
ANY_NAMESPACE = None


@dataclass(frozen=True, slots=True)
class PatternSegment:
    """One step of a pattern. ``namespace`` of None means namespace-agnostic."""

    name: str
    namespace: str | None = ANY_NAMESPACE

    @property
    def is_wildcard(self) -> bool:
        return self.name == WILDCARD

    def accepts(self, segment: PathSegment) -> bool:
        if self.namespace is not None and self.namespace != segment.namespace:
            return False
        return self.is_wildcard or self.name == segment.name

    def __str__(self) -> str:
        if self.namespace is None:
            return self.name
        return f"{{{self.namespace}}}{self.name}"


@dataclass(frozen=True, slots=True)
class Pattern:
    """A parsed, immutable path pattern."""

    text: str
    segments: tuple[PatternSegment, ...]
    rooted: bool = False
    any_depth: bool = False

    @classmethod
    def parse(cls, text: str, namespace: str | None = None) -> "Pattern":
        """
        Parse pattern text.

        Args:
            text: Pattern source, e.g. ``/config/server/*`` or ``{urn:x}item/**``
            namespace: Namespace applied to every bare literal segment

        Raises:
            ConfigurationError: On empty patterns, empty segments, unbalanced
                namespace braces or ``**`` anywhere but the end.
        """
        if not isinstance(text, str) or not text.strip():
            raise ConfigurationError("Pattern must be a non-empty string").with_context(pattern=repr(text))

        source = text.strip()
        rooted = source.startswith("/")
        body = source[1:] if rooted else source

        raw = _split_segments(body, source)
        any_depth = False
        if raw and raw[-1] == ANY_DEPTH:
            any_depth = True
            raw = raw[:-1]

        segments = []
        for part in raw:
            if part == ANY_DEPTH:
                raise ConfigurationError(
                    f"'**' is only allowed as the last segment of a pattern: {source!r}"
                ).with_context(pattern=source)
            segments.append(_parse_segment(part, source, namespace))

        if not segments and rooted and not any_depth:
            raise ConfigurationError(f"Pattern {source!r} has no segments").with_context(pattern=source)

        return cls(text=source, segments=tuple(segments), rooted=rooted, any_depth=any_depth)

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def matches(self, path: Path) -> bool:
        n = len(self.segments)
        if len(path) < n or not path:
            return False

        if self.rooted:
            if not self.any_depth and len(path) != n:
                return False
            return self._matches_at(path, 0)

        if not self.any_depth:
            return self._matches_at(path, len(path) - n)

        # Unrooted and open-ended: the literal run may sit anywhere.
        return any(self._matches_at(path, start) for start in range(len(path) - n + 1))

    def _matches_at(self, path: Path, start: int) -> bool:
        for offset, pattern_segment in enumerate(self.segments):
            if not pattern_segment.accepts(path[start + offset]):
                return False
        return True

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    @property
    def wildcard_count(self) -> int:
        count = sum(1 for s in self.segments if s.is_wildcard)
        if self.any_depth:
            count += 1
        if not self.rooted:
            count += 1
        return count

    @property
    def literal_count(self) -> int:
        return sum(1 for s in self.segments if not s.is_wildcard)

    @property
    def is_exact(self) -> bool:
        return self.rooted and self.wildcard_count == 0

    @property
    def specificity(self) -> tuple[int, int, int, int]:
        qualified = sum(1 for s in self.segments if s.namespace is not None)
        return (0 if self.is_exact else 1, self.wildcard_count, -self.literal_count, -qualified)

    def __str__(self) -> str:
        return self.text


def _split_segments(body: str, source: str) -> list[str]:
    """Split on '/' outside of '{...}' namespace qualifiers."""
    parts: list[str] = []
    current: list[str] = []
    in_braces = False
    for ch in body:
        if ch == "{":
            if in_braces:
                raise ConfigurationError(f"Nested '{{' in pattern {source!r}").with_context(pattern=source)
            in_braces = True
        elif ch == "}":
            if not in_braces:
                raise ConfigurationError(f"Unbalanced '}}' in pattern {source!r}").with_context(pattern=source)
            in_braces = False
        elif ch == "/" and not in_braces:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    if in_braces:
        raise ConfigurationError(f"Unclosed '{{' in pattern {source!r}").with_context(pattern=source)
    parts.append("".join(current))

    if body == "":
        return []
    if any(part == "" for part in parts):
        raise ConfigurationError(f"Empty segment in pattern {source!r}").with_context(pattern=source)
    return parts


def _parse_segment(part: str, source: str, default_namespace: str | None) -> PatternSegment:
    if part.startswith("{"):
        close = part.index("}")
        namespace = part[1:close]
        name = part[close + 1:]
        if not name:
            raise ConfigurationError(
                f"Namespace qualifier without a name in pattern {source!r}"
            ).with_context(pattern=source)
        return PatternSegment(name=name, namespace=namespace)
    if "{" in part or "}" in part:
        raise ConfigurationError(f"Misplaced brace in pattern {source!r}").with_context(pattern=source)
    if part == WILDCARD:
        return PatternSegment(name=WILDCARD, namespace=None)
    return PatternSegment(name=part, namespace=default_namespace)
