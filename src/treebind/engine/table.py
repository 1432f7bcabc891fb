"""Rule table: an insertion-ordered multimap from pattern to rule.

Manifesto:
    Rules are declared once, before any document is read, and the table is
    then shared read-only by every parse that uses it. Registration order is
    permanent because it is the final tie-break between equally specific
    patterns.

Tags:
    treebind, engine, registry, rule-table
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from treebind.core.errors import ConfigurationError
from treebind.engine.pattern import Pattern
from treebind.logging import get_logger

if TYPE_CHECKING:
    from treebind.engine.rule import Rule

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RuleEntry:
    """(pattern, rule, registration index)."""

    pattern: Pattern
    rule: "Rule"
    index: int

    @property
    def sort_key(self) -> tuple[int, int, int, int, int]:
        return (*self.pattern.specificity, self.index)


class RuleTable:
    """Ordered registry of ``RuleEntry`` objects.

    The table freezes the first time a parse starts; any later ``register``
    raises ``ConfigurationError``.
    """

    def __init__(self) -> None:
        self._entries: list[RuleEntry] = []
        self._frozen = False

    def register(self, pattern: str | Pattern, rule: "Rule", namespace: str | None = None) -> RuleEntry:
        """Append a rule for ``pattern``. Returns the new entry."""
        if self._frozen:
            raise ConfigurationError(
                "Cannot register rules after parsing has started"
            ).with_context(pattern=str(pattern), rule=type(rule).__name__)

        if not isinstance(pattern, Pattern):
            pattern = Pattern.parse(pattern, namespace=namespace)
        elif namespace is not None:
            raise ConfigurationError(
                "namespace= only applies to pattern text, not a parsed Pattern"
            ).with_context(pattern=pattern.text)

        entry = RuleEntry(pattern=pattern, rule=rule, index=len(self._entries))
        self._entries.append(entry)
        logger.debug(
            "table.registered",
            pattern=pattern.text,
            rule=type(rule).__name__,
            index=entry.index,
        )
        return entry

    def freeze(self) -> None:
        if not self._frozen:
            self._frozen = True
            logger.debug("table.frozen", entries=len(self._entries))

    @property
    def frozen(self) -> bool:
        return self._frozen

    def entries(self) -> tuple[RuleEntry, ...]:
        return tuple(self._entries)

    def lookup(self, pattern: str) -> list[RuleEntry]:
        """Entries registered under exactly this pattern text, in registration order."""
        text = pattern.strip()
        return [e for e in self._entries if e.pattern.text == text]

    def patterns(self) -> list[str]:
        """Distinct pattern texts, in first-registration order."""
        return list(dict.fromkeys(e.pattern.text for e in self._entries))

    def __iter__(self) -> Iterator[RuleEntry]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"RuleTable({len(self._entries)} entries, {state})"
