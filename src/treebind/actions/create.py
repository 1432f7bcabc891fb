"""Object creation."""

from __future__ import annotations

import importlib
from collections.abc import Callable, Mapping
from typing import Any

from treebind.core.errors import ConfigurationError
from treebind.engine.rule import Rule
from treebind.logging import get_logger

log = get_logger(__name__)

Factory = Callable[..., Any]


def resolve_factory(spec: str | Factory) -> Factory:
    """
    Resolve ``"package.module:Name"`` or ``"package.module.Name"`` to a callable.

    Callables are returned unchanged.
    """
    if callable(spec):
        return spec
    if not isinstance(spec, str) or not spec:
        raise ConfigurationError(f"Cannot resolve factory from {spec!r}")

    if ":" in spec:
        module_name, _, attr_path = spec.partition(":")
    else:
        module_name, _, attr_path = spec.rpartition(".")
    if not module_name or not attr_path:
        raise ConfigurationError(f"Factory '{spec}' must be 'module:name' or 'module.name'")

    try:
        obj: Any = importlib.import_module(module_name)
        for part in attr_path.split("."):
            obj = getattr(obj, part)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot import factory '{spec}': {e}", cause=e) from e

    if not callable(obj):
        raise ConfigurationError(f"Factory '{spec}' is not callable")
    return obj


class ObjectCreateAction(Rule):
    """
    Build an object when the element opens, push it, pop it when the element closes.

    Args:
        factory: Class, callable, or import path of one
        attribute_name: Optional attribute whose value, when present, names a
            different factory (import path) for this occurrence
        with_attributes: Call the factory with the element's attributes as a
            dict instead of no arguments
    """

    def __init__(
        self,
        factory: str | Factory,
        attribute_name: str | None = None,
        *,
        with_attributes: bool = False,
    ) -> None:
        self.factory = resolve_factory(factory)
        self.attribute_name = attribute_name
        self.with_attributes = with_attributes

    def begin(self, context, path, attributes: Mapping[str, str]) -> None:
        factory = self.factory
        if self.attribute_name:
            override = attributes.get(self.attribute_name)
            if override:
                factory = resolve_factory(override.strip())

        instance = factory(dict(attributes)) if self.with_attributes else factory()
        log.debug("action.object_create", path=context.match_path, type=type(instance).__name__)
        context.push_object(instance)

    def end(self, context, path) -> None:
        # The engine truncates the stack after an abort; only pop what we pushed.
        if context.aborting and context.object_depth <= context.activation.object_depth:
            return
        context.pop_object()

    def __repr__(self) -> str:
        name = getattr(self.factory, "__qualname__", repr(self.factory))
        return f"ObjectCreateAction({name})"
