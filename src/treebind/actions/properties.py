"""
Property-setting actions.

All three write to the object on top of the object stack through the
engine's ``PropertySetter``. Missing properties follow the strict/permissive
setting: ``ignore_missing=None`` defers to
``BinderSettings.ignore_missing_properties``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from treebind.engine.rule import Rule
from treebind.logging import get_logger
from treebind.properties import to_identifier

log = get_logger(__name__)


def _ignore_missing(context, override: bool | None) -> bool:
    if override is not None:
        return override
    return context.settings.ignore_missing_properties


class SetPropertiesAction(Rule):
    """
    Map each attribute of the element onto a property of the top object.

    Attribute ``max-size`` maps to property ``max_size`` unless an alias says
    otherwise. An alias whose property is ``None`` ignores the attribute.

    Example:
        SetPropertiesAction(aliases={"alt-city": "city", "ignore-me": None})
    """

    def __init__(
        self,
        aliases: Mapping[str, str | None] | None = None,
        ignore: Iterable[str] = (),
        ignore_missing: bool | None = None,
    ) -> None:
        self.aliases: dict[str, str | None] = dict(aliases or {})
        for attribute in ignore:
            self.aliases[attribute] = None
        self.ignore_missing = ignore_missing

    def add_alias(self, attribute_name: str, property_name: str | None) -> "SetPropertiesAction":
        self.aliases[attribute_name] = property_name
        return self

    def ignore_attribute(self, attribute_name: str) -> "SetPropertiesAction":
        self.aliases[attribute_name] = None
        return self

    def property_for(self, attribute_name: str) -> str | None:
        if attribute_name in self.aliases:
            target = self.aliases[attribute_name]
            return None if target is None else to_identifier(target)
        return to_identifier(attribute_name)

    def begin(self, context, path, attributes: Mapping[str, str]) -> None:
        target = context.peek_object()
        ignore_missing = _ignore_missing(context, self.ignore_missing)
        setter = context.property_setter
        for attribute_name, value in attributes.items():
            property_name = self.property_for(attribute_name)
            if property_name is None:
                continue
            log.debug(
                "action.set_properties",
                path=context.match_path,
                target=type(target).__name__,
                property=property_name,
            )
            setter.set_property(target, property_name, value, ignore_missing=ignore_missing)


class SetPropertyAction(Rule):
    """
    Set one property whose *name* and *value* both come from attributes.

    ``<param name="timeout" value="30"/>`` with the defaults sets
    ``top.timeout = "30"``.
    """

    def __init__(
        self,
        name_attribute: str = "name",
        value_attribute: str = "value",
        ignore_missing: bool | None = None,
    ) -> None:
        self.name_attribute = name_attribute
        self.value_attribute = value_attribute
        self.ignore_missing = ignore_missing

    def begin(self, context, path, attributes: Mapping[str, str]) -> None:
        name = attributes.get(self.name_attribute)
        if not name or self.value_attribute not in attributes:
            return
        context.property_setter.set_property(
            context.peek_object(),
            to_identifier(name),
            attributes[self.value_attribute],
            ignore_missing=_ignore_missing(context, self.ignore_missing),
        )


class BeanPropertySetterAction(Rule):
    """
    Set the element's body text as a property of the top object.

    The property defaults to the element's own name, so ``<port>8080</port>``
    under a ``server`` object sets ``server.port = "8080"``.
    """

    def __init__(
        self,
        property_name: str | None = None,
        *,
        trim: bool = True,
        ignore_missing: bool | None = None,
    ) -> None:
        self.property_name = property_name
        self.trim = trim
        self.ignore_missing = ignore_missing

    def body(self, context, path, text: str) -> None:
        name = to_identifier(self.property_name or path[-1].name)
        value = text.strip() if self.trim else text
        context.property_setter.set_property(
            context.peek_object(),
            name,
            value,
            ignore_missing=_ignore_missing(context, self.ignore_missing),
        )
