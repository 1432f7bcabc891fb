"""
Document survey - which paths does a document have, which patterns hit them.

Used by the CLI to help write rule sets; both functions run a real
``Binder`` parse with probe rules, so the answers are exactly what the
engine would dispatch.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from treebind.binder import Binder
from treebind.core.settings import BinderSettings
from treebind.engine.rule import Rule
from treebind.sax import Source


@dataclass
class PathCount:
    path: str
    count: int


@dataclass
class PathMatch:
    path: str
    patterns: list[str] = field(default_factory=list)


class _PathCounter(Rule):
    def __init__(self) -> None:
        self.counts: dict[str, int] = {}

    def begin(self, context, path, attributes: Mapping[str, str]) -> None:
        key = context.match_path
        self.counts[key] = self.counts.get(key, 0) + 1


class _PatternProbe(Rule):
    def __init__(self, hits: dict[str, list[str]]) -> None:
        self.hits = hits

    def begin(self, context, path, attributes: Mapping[str, str]) -> None:
        patterns = self.hits.setdefault(context.match_path, [])
        pattern = context.activation.entry.pattern.text
        if pattern not in patterns:
            patterns.append(pattern)


def collect_paths(source: Source, settings: BinderSettings | None = None) -> list[PathCount]:
    """Every distinct element path in document order of first appearance."""
    counter = _PathCounter()
    binder = Binder(settings)
    binder.add_rule("**", counter)
    binder.parse(source)
    return [PathCount(path, count) for path, count in counter.counts.items()]


def match_paths(
    source: Source,
    patterns: Iterable[str],
    settings: BinderSettings | None = None,
) -> list[PathMatch]:
    """For each element path, the given patterns that match it in dispatch order."""
    hits: dict[str, list[str]] = {}
    binder = Binder(settings)
    counter = _PathCounter()
    binder.add_rule("**", counter)
    for pattern in patterns:
        binder.add_rule(pattern, _PatternProbe(hits))

    binder.parse(source)
    return [PathMatch(path, hits.get(path, [])) for path in counter.counts]
