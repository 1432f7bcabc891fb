"""
Dispatch engine - turns parser events into ordered rule callbacks.

Manifesto:
    Rules should never have to know where they are in the document, who else
    matched, or how to clean up when a sibling fails. The engine owns the
    path, the activations and the stacks, invokes callbacks in a fixed order,
    and always releases what it opened before an error reaches the caller.

Architecture:
    ::

        parser events ──► DispatchEngine ──► PathTracker.open/close
                               │
                               ├──► PatternMatcher.match(path) ──► [RuleEntry]
                               │
                               └──► Rule.begin / body / end (via DigestContext)
                                           │
                                           └──► ContextStacks (objects, named, params)

Ordering:
    - open:  ``begin`` for each matched rule, most specific first
    - close: for each activation in *reverse* begin order, ``body`` then
      ``end``, then retire; the path shrinks only after every activation
      for the element has retired
    - error: every begun activation still open gets ``end`` exactly once,
      innermost first, with ``context.aborting`` set; stacks are restored to
      their depth at document start; the error is then re-raised

Tags:
    treebind, engine, dispatch, state-machine, stacks
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from treebind.core.errors import (
    ConfigurationError,
    ImbalanceError,
    RuleCallbackError,
    StackImbalanceError,
    TreebindError,
    UnterminatedDocumentError,
)
from treebind.core.settings import BinderSettings
from treebind.engine.activation import Activation, ActivationState
from treebind.engine.events import Event, EventType
from treebind.engine.matcher import PatternMatcher
from treebind.engine.params import ParamBuffer
from treebind.engine.path import Path, PathTracker, format_path
from treebind.engine.stacks import ContextStacks
from treebind.engine.table import RuleTable
from treebind.logging import get_logger
from treebind.properties import AttributePropertySetter, PropertySetter

log = get_logger(__name__)


class EngineState(str, Enum):
    """Engine-level state."""

    IDLE = "idle"
    IN_DOCUMENT = "in_document"


@dataclass(frozen=True, slots=True)
class DispatchRecord:
    """One callback invocation, as reported to a dispatch listener."""

    phase: str
    path: str
    rule: str
    pattern: str
    depth: int


DispatchListener = Callable[[DispatchRecord], None]


@dataclass
class _Frame:
    """Per-open-element bookkeeping: activations in begin order and own text."""

    path: Path
    activations: list[Activation] = field(default_factory=list)
    text: list[str] = field(default_factory=list)


class DigestContext:
    """
    What rules see of the engine.

    Passed as the first argument of every ``begin``/``body``/``end``.
    """

    def __init__(self, engine: "DispatchEngine") -> None:
        self._engine = engine

    # ── Position ───────────────────────────────────────────────────

    def current_path(self) -> Path:
        return self._engine._tracker.current

    @property
    def match_path(self) -> str:
        return self._engine._tracker.match_path

    @property
    def activation(self) -> Activation:
        """The activation whose callback is running."""
        current = self._engine._current
        if current is None:
            raise ImbalanceError("No rule callback is running")
        return current

    @property
    def aborting(self) -> bool:
        """True while the engine is unwinding after an error."""
        return self._engine._aborting

    @property
    def settings(self) -> BinderSettings:
        return self._engine.settings

    @property
    def property_setter(self) -> PropertySetter:
        return self._engine.property_setter

    @property
    def document(self) -> str | None:
        return self._engine.document

    @property
    def stacks(self) -> ContextStacks:
        return self._engine._stacks

    # ── Object stack ───────────────────────────────────────────────

    def push_object(self, obj: Any) -> None:
        self._engine.push_object(obj)

    def pop_object(self) -> Any:
        return self._engine._stacks.objects.pop()

    def peek_object(self, n: int = 0) -> Any:
        return self._engine._stacks.objects.peek(n)

    @property
    def object_depth(self) -> int:
        return self._engine._stacks.objects.depth

    @property
    def root(self) -> Any:
        return self._engine.root

    # ── Named stacks ───────────────────────────────────────────────

    def push_named(self, key: str, value: Any) -> None:
        self._engine._stacks.named(key).push(value)

    def pop_named(self, key: str) -> Any:
        return self._engine._stacks.named(key).pop()

    def peek_named(self, key: str, n: int = 0) -> Any:
        return self._engine._stacks.named(key).peek(n)

    def named_empty(self, key: str) -> bool:
        return not self._engine._stacks.has_named(key)

    # ── Call-parameter protocol ────────────────────────────────────

    def allocate_params(self, count: int | None) -> ParamBuffer:
        """Open a parameter buffer owned by the running activation."""
        activation = self.activation
        if activation.params is not None:
            raise ImbalanceError(
                f"{activation.rule.name} already owns a parameter buffer"
            ).with_context(**activation.describe())
        buffer = ParamBuffer(count, owner=activation)
        self._engine._stacks.params.push(buffer)
        activation.params = buffer
        return buffer

    def set_param(self, index: int | None, value: Any) -> int:
        """Write one slot of the nearest enclosing buffer. Returns the slot index."""
        return self._engine._stacks.top_params().set(index, value)

    def consume_params(self) -> list[Any]:
        """Pop the running activation's buffer and return its values in slot order."""
        activation = self.activation
        stack = self._engine._stacks.params
        buffer = activation.params
        if buffer is None:
            raise ImbalanceError(
                f"{activation.rule.name} has no parameter buffer to consume"
            ).with_context(**activation.describe())
        if not stack or stack.peek() is not buffer:
            raise ImbalanceError(
                "Parameter buffer is not on top of the parameter stack"
            ).with_context(**activation.describe())
        stack.pop()
        activation.params = None
        return buffer.values()

    def has_params(self) -> bool:
        return bool(self._engine._stacks.params)


class DispatchEngine:
    """
    The event-driven state machine.

    One engine serves one parse. After ``end_document`` (or an error) the
    engine is idle again but must be ``reset()`` before it accepts another
    document.

    Args:
        table: Rule table; frozen when the first document starts
        settings: Binder settings (stack check, match cache, strictness)
        property_setter: Capability used by property-setting actions
        document: Name used in logs and error context
        listener: Called with a ``DispatchRecord`` for every callback
    """

    def __init__(
        self,
        table: RuleTable,
        *,
        settings: BinderSettings | None = None,
        property_setter: PropertySetter | None = None,
        document: str | None = None,
        listener: DispatchListener | None = None,
    ) -> None:
        self.table = table
        self.settings = settings or BinderSettings()
        self.property_setter = property_setter or AttributePropertySetter()
        self.document = document
        self.listener = listener

        self._matcher = PatternMatcher(table, cache=self.settings.match_cache)
        self._tracker = PathTracker()
        self._stacks = ContextStacks()
        self.context = DigestContext(self)

        self._frames: list[_Frame] = []
        self._state = EngineState.IDLE
        self._used = False
        self._aborting = False
        self._current: Activation | None = None
        self._base_depth = 0
        self._root: Any = None

        self.element_count = 0
        self.activation_count = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def depth(self) -> int:
        return self._tracker.depth

    @property
    def stacks(self) -> ContextStacks:
        return self._stacks

    @property
    def root(self) -> Any:
        """The first object pushed onto an empty object stack."""
        return self._root

    def open_activations(self) -> list[Activation]:
        return [a for frame in self._frames for a in frame.activations]

    def push_object(self, obj: Any) -> None:
        """Push onto the object stack (also used to pre-push a root before parsing)."""
        if not self._stacks.objects:
            self._root = obj
        self._stacks.objects.push(obj)

    # ------------------------------------------------------------------
    # Upstream events
    # ------------------------------------------------------------------

    def start_document(self) -> None:
        if self._state is EngineState.IN_DOCUMENT:
            raise ImbalanceError("start_document received while a document is in progress")
        if self._used:
            raise ConfigurationError("DispatchEngine already processed a document; call reset() first")

        self.table.freeze()
        self._state = EngineState.IN_DOCUMENT
        self._used = True
        self._base_depth = self._stacks.objects.depth
        log.debug("dispatch.document_start", document=self.document, rules=len(self.table))

    def open_element(self, namespace: str | None, name: str, attributes: Mapping[str, str] | None = None) -> None:
        self._require_document("open_element")
        attributes = attributes if attributes is not None else {}

        path = self._tracker.open(namespace, name)
        frame = _Frame(path)
        self._frames.append(frame)
        self.element_count += 1

        try:
            for entry in self._matcher.match(path):
                activation = Activation(entry=entry, path=path, object_depth=self._stacks.objects.depth)
                frame.activations.append(activation)
                self.activation_count += 1
                self._invoke(activation, "begin", entry.rule.begin, path, attributes)
                activation.status = ActivationState.BEGAN
        except BaseException as e:
            self._abort(e)
            raise

    def text(self, chars: str) -> None:
        self._require_document("text")
        if self._frames:
            self._frames[-1].text.append(chars)

    def close_element(self) -> None:
        self._require_document("close_element")
        if not self._frames:
            raise ImbalanceError("close_element received with no open element").with_context(depth=0)

        frame = self._frames[-1]
        path = frame.path
        body = "".join(frame.text)

        try:
            for activation in reversed(frame.activations):
                rule = activation.rule
                activation.body = body
                self._invoke(activation, "body", rule.body, path, body)
                activation.status = ActivationState.ENDED
                self._invoke(activation, "end", rule.end, path)
                self._retire(activation, check_balance=True)
        except BaseException as e:
            self._abort(e)
            raise

        self._frames.pop()
        self._tracker.close()

    def end_document(self) -> Any:
        self._require_document("end_document")
        if self._tracker.depth:
            open_path = tuple(str(s) for s in self._tracker.current)
            error = UnterminatedDocumentError(
                f"Document ended with {len(open_path)} open element(s)",
                open_path=open_path,
            ).with_context(path=self._tracker.match_path, depth=len(open_path), document=self.document)
            raise self._abort(error)

        self._state = EngineState.IDLE
        log.debug(
            "dispatch.document_end",
            document=self.document,
            elements=self.element_count,
            activations=self.activation_count,
        )
        return self._root

    def replay(self, events: Iterable[Event]) -> Any:
        """Feed a sequence of ``Event`` records; returns the root object."""
        result = None
        for event in events:
            if event.type is EventType.START_DOCUMENT:
                self.start_document()
            elif event.type is EventType.OPEN:
                self.open_element(event.namespace, event.name or "", event.attributes)
            elif event.type is EventType.TEXT:
                self.text(event.text or "")
            elif event.type is EventType.CLOSE:
                self.close_element()
            elif event.type is EventType.END_DOCUMENT:
                result = self.end_document()
        return result

    def abort(self, error: BaseException) -> BaseException:
        """
        Unwind an in-progress document after an upstream failure.

        Used by event sources when the parser itself fails between events.
        Returns the error so callers can ``raise engine.abort(e)``.
        """
        if self._state is EngineState.IN_DOCUMENT:
            return self._abort(error)
        return error

    def reset(self) -> None:
        """Make the engine ready for another document."""
        if self._state is EngineState.IN_DOCUMENT:
            raise ImbalanceError("Cannot reset while a document is in progress")
        self._tracker.clear()
        self._stacks.clear()
        self._frames.clear()
        self._used = False
        self._current = None
        self._root = None
        self._base_depth = 0
        self.element_count = 0
        self.activation_count = 0

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_document(self, event: str) -> None:
        if self._state is not EngineState.IN_DOCUMENT:
            raise ImbalanceError(f"{event} received outside a document").with_context(
                document=self.document
            )

    def _invoke(self, activation: Activation, phase: str, callback: Callable[..., None], *args: Any) -> None:
        previous = self._current
        self._current = activation
        if self.listener is not None:
            self.listener(
                DispatchRecord(
                    phase=phase,
                    path=format_path(activation.path),
                    rule=activation.rule.name,
                    pattern=activation.entry.pattern.text,
                    depth=activation.depth,
                )
            )
        try:
            callback(self.context, *args)
        except RuleCallbackError:
            raise
        except Exception as e:
            raise RuleCallbackError(
                f"{activation.rule.name}.{phase} raised {type(e).__name__}: {e}",
                cause=e,
            ).with_context(phase=phase, document=self.document, **activation.describe()) from e
        finally:
            self._current = previous

    def _retire(self, activation: Activation, *, check_balance: bool) -> None:
        if activation.params is not None:
            stack = self._stacks.params
            buffer = activation.params
            activation.params = None
            on_top = bool(stack) and stack.peek() is buffer
            if check_balance:
                log.warning("dispatch.params_unconsumed", **activation.describe())
                if not on_top:
                    raise ImbalanceError(
                        "Unconsumed parameter buffer is not on top of the parameter stack"
                    ).with_context(**activation.describe())
            if on_top:
                stack.pop()

        if check_balance and not activation.rule.leaves_net_push:
            self._check_balance(activation)

        activation.status = ActivationState.RETIRED

    def _check_balance(self, activation: Activation) -> None:
        mode = self.settings.stack_check
        actual = self._stacks.objects.depth
        if mode == "off" or actual == activation.object_depth:
            return
        details = activation.describe()
        if mode == "strict":
            raise StackImbalanceError(
                f"{activation.rule.name} changed object stack depth from "
                f"{activation.object_depth} to {actual}",
                expected=activation.object_depth,
                actual=actual,
            ).with_context(document=self.document, **details)
        log.warning("dispatch.stack_imbalance", expected=activation.object_depth, actual=actual, **details)

    def _abort(self, error: BaseException) -> BaseException:
        """Unwind every open activation, restore the stacks, return the error to raise."""
        self._aborting = True
        cleanup_errors: list[BaseException] = []
        try:
            while self._frames:
                frame = self._frames[-1]
                for activation in reversed(frame.activations):
                    if activation.began and not activation.ended:
                        activation.status = ActivationState.ENDED
                        try:
                            self._invoke(activation, "end", activation.rule.end, frame.path)
                        except Exception as cleanup_error:
                            cleanup_errors.append(cleanup_error)
                            log.warning(
                                "dispatch.cleanup_error",
                                error=str(cleanup_error),
                                error_type=type(cleanup_error).__name__,
                                **activation.describe(),
                            )
                    self._retire(activation, check_balance=False)
                self._frames.pop()
                self._tracker.close()

            self._stacks.objects.truncate(self._base_depth)
            self._stacks.params.clear()
            for key in self._stacks.named_keys():
                self._stacks.named(key).clear()
        finally:
            self._aborting = False
            self._current = None
            self._state = EngineState.IDLE

        for cleanup_error in cleanup_errors:
            error.add_note(f"during cleanup: {type(cleanup_error).__name__}: {cleanup_error}")

        if isinstance(error, TreebindError):
            log.error("dispatch.aborted", **error.to_dict())
        else:
            log.error("dispatch.aborted", error=str(error), error_type=type(error).__name__)
        return error
