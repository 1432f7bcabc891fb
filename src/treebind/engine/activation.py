"""Activation records: one per (rule, matched element occurrence)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from treebind.engine.params import ParamBuffer
from treebind.engine.path import Path, format_path
from treebind.engine.table import RuleEntry


class ActivationState(str, Enum):
    """Lifecycle of one activation."""

    MATCHED = "matched"
    BEGAN = "began"
    ENDED = "ended"
    RETIRED = "retired"


@dataclass(eq=False)
class Activation:
    """
    Engine-owned, per-match state for a rule.

    ``state`` is the rule's private scratch space for this occurrence;
    ``params`` is the parameter buffer it allocated, if any.
    """

    entry: RuleEntry
    path: Path
    object_depth: int
    status: ActivationState = ActivationState.MATCHED
    params: ParamBuffer | None = None
    body: str | None = None
    state: dict[str, Any] = field(default_factory=dict)

    @property
    def rule(self):
        return self.entry.rule

    @property
    def depth(self) -> int:
        return len(self.path)

    @property
    def began(self) -> bool:
        return self.status is not ActivationState.MATCHED

    @property
    def ended(self) -> bool:
        return self.status in (ActivationState.ENDED, ActivationState.RETIRED)

    def describe(self) -> dict[str, Any]:
        return {
            "path": format_path(self.path),
            "pattern": self.entry.pattern.text,
            "rule": self.entry.rule.name,
            "depth": self.depth,
        }

    def __repr__(self) -> str:
        return (
            f"Activation({self.entry.rule.name} @ {format_path(self.path)!r}, "
            f"{self.status.value})"
        )
