"""
Call-parameter actions.

``CallMethodAction`` is the collector: it opens a parameter buffer when its
element opens and makes a single call when the element closes. The
``*ParamAction`` rules, registered on the same element or on descendants,
each fill one slot of the nearest enclosing buffer.

Example::

    <server>
      <listen host="0.0.0.0"><port>8080</port></listen>
    </server>

    binder.add_rule("server/listen", CallMethodAction("listen", 2, param_types=(str, int)))
    binder.add_rule("server/listen", CallParamAction(0, attribute="host"))
    binder.add_rule("server/listen/port", CallParamAction(1))

calls ``server.listen("0.0.0.0", 8080)``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from treebind.core.errors import ConfigurationError
from treebind.engine.params import UNSET
from treebind.engine.rule import Rule
from treebind.logging import get_logger

log = get_logger(__name__)

_BODY = "body"


class CallMethodAction(Rule):
    """
    Call ``<method>`` on an object of the stack with collected parameters.

    Args:
        method: Method name on the target object
        param_count: Number of slots; ``0`` means "call with the body text",
            ``None`` means a variable-length buffer
        param_types: Optional converters applied slot by slot (``UNSET`` is
            passed through untouched)
        target_offset: Stack position of the target (0 = top)
    """

    def __init__(
        self,
        method: str,
        param_count: int | None = 0,
        param_types: Sequence[Callable[[Any], Any]] | None = None,
        target_offset: int = 0,
    ) -> None:
        if param_count is not None and param_count < 0:
            raise ConfigurationError(f"param_count must be >= 0, got {param_count}")
        if param_types is not None and param_count is not None and len(param_types) > max(param_count, 1):
            raise ConfigurationError(
                f"{len(param_types)} param type(s) given for {param_count} parameter(s)"
            )
        self.method = method
        self.param_count = param_count
        self.param_types = tuple(param_types or ())
        self.target_offset = target_offset

    @property
    def uses_body(self) -> bool:
        return self.param_count == 0

    def begin(self, context, path, attributes: Mapping[str, str]) -> None:
        if not self.uses_body:
            context.allocate_params(self.param_count)

    def body(self, context, path, text: str) -> None:
        if self.uses_body:
            context.activation.state[_BODY] = text.strip()

    def end(self, context, path) -> None:
        if context.aborting:
            return
        if self.uses_body:
            args = [context.activation.state.get(_BODY, "")]
        else:
            args = context.consume_params()

        args = self.convert(args)
        target = context.peek_object(self.target_offset)
        log.debug(
            "action.call_method",
            path=context.match_path,
            target=type(target).__name__,
            method=self.method,
            params=len(args),
        )
        getattr(target, self.method)(*args)

    def convert(self, args: list[Any]) -> list[Any]:
        converted = list(args)
        for i, converter in enumerate(self.param_types):
            if i < len(converted) and converted[i] is not UNSET:
                converted[i] = converter(converted[i])
        return converted

    def __repr__(self) -> str:
        return f"CallMethodAction({self.method!r}, {self.param_count})"


class CallParamAction(Rule):
    """
    Fill one slot of the nearest enclosing parameter buffer.

    The value comes from, in order of precedence:

    - ``attribute``: that attribute of the element (slot left unset if absent)
    - ``from_stack``: the object at that stack offset when the element opens
    - otherwise the element's body text (stripped)

    ``index=None`` writes the next free slot.
    """

    def __init__(
        self,
        index: int | None = None,
        attribute: str | None = None,
        from_stack: int | None = None,
    ) -> None:
        if attribute is not None and from_stack is not None:
            raise ConfigurationError("CallParamAction takes attribute= or from_stack=, not both")
        self.index = index
        self.attribute = attribute
        self.from_stack = from_stack

    def begin(self, context, path, attributes: Mapping[str, str]) -> None:
        if self.attribute is not None:
            if self.attribute in attributes:
                context.set_param(self.index, attributes[self.attribute])
        elif self.from_stack is not None:
            context.set_param(self.index, context.peek_object(self.from_stack))

    def body(self, context, path, text: str) -> None:
        if self.attribute is None and self.from_stack is None:
            context.set_param(self.index, text.strip())

    def __repr__(self) -> str:
        return f"CallParamAction({self.index!r})"


class ObjectParamAction(Rule):
    """
    Fill a slot with a constant configured at registration.

    With ``attribute`` set, the constant is only written when the element
    carries that attribute.
    """

    def __init__(self, value: Any, index: int | None = None, attribute: str | None = None) -> None:
        self.value = value
        self.index = index
        self.attribute = attribute

    def begin(self, context, path, attributes: Mapping[str, str]) -> None:
        if self.attribute is None or self.attribute in attributes:
            context.set_param(self.index, self.value)


class PathCallParamAction(Rule):
    """Fill a slot with the current match path (``a/b/c``)."""

    def __init__(self, index: int | None = None) -> None:
        self.index = index

    def begin(self, context, path, attributes: Mapping[str, str]) -> None:
        context.set_param(self.index, context.match_path)
