"""Pattern matcher: which rules fire for a path, and in what order."""

from __future__ import annotations

from treebind.engine.path import Path
from treebind.engine.table import RuleEntry, RuleTable


class PatternMatcher:
    """
    Resolves a path to the ordered list of matching ``RuleEntry`` objects.

    Results are sorted by ``RuleEntry.sort_key``: pattern specificity, then
    registration order. The table is frozen during a parse, so results are
    cached per distinct path when ``cache`` is enabled.
    """

    def __init__(self, table: RuleTable, *, cache: bool = True) -> None:
        self._table = table
        self._cache: dict[Path, tuple[RuleEntry, ...]] | None = {} if cache else None

    def match(self, path: Path) -> list[RuleEntry]:
        if self._cache is not None:
            hit = self._cache.get(path)
            if hit is None:
                hit = self._compute(path)
                self._cache[path] = hit
            return list(hit)
        return list(self._compute(path))

    def _compute(self, path: Path) -> tuple[RuleEntry, ...]:
        matched = [entry for entry in self._table if entry.pattern.matches(path)]
        matched.sort(key=lambda entry: entry.sort_key)
        return tuple(matched)

    @property
    def cached_paths(self) -> int:
        return len(self._cache) if self._cache is not None else 0
