"""
Property-setting capability used by the property actions.

The engine never mutates domain objects itself. Actions that map attributes
or body text onto an object go through a ``PropertySetter``; swap in your own
to add type conversion, per-class registries or validation.

``AttributePropertySetter`` is the default:

- mappings (``dict`` and friends) get ``target[name] = value``
- pydantic models must declare the field (``model_fields``); assignment goes
  through ``setattr`` so ``validate_assignment`` applies when configured
- other objects get ``setattr`` when the attribute already exists (class or
  instance); a missing attribute raises ``MissingPropertyError`` in strict
  mode and is skipped in permissive mode
"""

from __future__ import annotations

import keyword
import re
from collections.abc import MutableMapping
from typing import Any, Protocol, runtime_checkable

from treebind.core.errors import MissingPropertyError
from treebind.logging import get_logger

log = get_logger(__name__)

_NON_IDENTIFIER = re.compile(r"\W")


def to_identifier(name: str) -> str:
    """
    Turn an XML name into a Python attribute name.

    >>> to_identifier("max-connections")
    'max_connections'
    >>> to_identifier("class")
    'class_'
    """
    ident = _NON_IDENTIFIER.sub("_", name.replace("-", "_").replace(".", "_"))
    if ident and ident[0].isdigit():
        ident = f"_{ident}"
    if keyword.iskeyword(ident):
        ident = f"{ident}_"
    return ident


@runtime_checkable
class PropertySetter(Protocol):
    """Narrow interface between actions and object mutation."""

    def set_property(self, target: Any, name: str, value: Any, *, ignore_missing: bool = False) -> bool:
        """Set ``name`` on ``target``. Returns False if the property was skipped."""
        ...


class AttributePropertySetter:
    """Default ``PropertySetter`` based on ``setattr`` / item assignment."""

    def has_property(self, target: Any, name: str) -> bool:
        if isinstance(target, MutableMapping):
            return True
        model_fields = getattr(type(target), "model_fields", None)
        if isinstance(model_fields, dict):
            return name in model_fields
        return hasattr(target, name)

    def set_property(self, target: Any, name: str, value: Any, *, ignore_missing: bool = False) -> bool:
        if isinstance(target, MutableMapping):
            target[name] = value
            return True

        if not self.has_property(target, name):
            if ignore_missing:
                log.debug("property.skipped", target=type(target).__name__, property=name)
                return False
            raise MissingPropertyError(target, name)

        setattr(target, name, value)
        return True
