"""
Parser events as values.

A streaming parser drives the engine with method calls; these records are
the same five events as data, so a captured or hand-written event sequence
can be replayed with ``DispatchEngine.replay``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum


class EventType(str, Enum):
    """The upstream event vocabulary."""

    START_DOCUMENT = "start_document"
    OPEN = "open"
    TEXT = "text"
    CLOSE = "close"
    END_DOCUMENT = "end_document"


@dataclass(frozen=True, slots=True)
class Event:
    type: EventType
    name: str | None = None
    namespace: str = ""
    attributes: Mapping[str, str] = field(default_factory=dict)
    text: str | None = None


def start_document() -> Event:
    return Event(EventType.START_DOCUMENT)


def open_element(name: str, attributes: Mapping[str, str] | None = None, namespace: str = "") -> Event:
    return Event(EventType.OPEN, name=name, namespace=namespace, attributes=dict(attributes or {}))


def text(chars: str) -> Event:
    return Event(EventType.TEXT, text=chars)


def close_element() -> Event:
    return Event(EventType.CLOSE)


def end_document() -> Event:
    return Event(EventType.END_DOCUMENT)


def document(*body: Event | Iterable[Event]) -> Iterator[Event]:
    """Wrap events in start/end document, flattening nested iterables."""
    yield start_document()
    for item in body:
        if isinstance(item, Event):
            yield item
        else:
            yield from item
    yield end_document()


def element(
    name: str,
    *children: "Event | str | Iterable[Event]",
    attributes: Mapping[str, str] | None = None,
    namespace: str = "",
) -> Iterator[Event]:
    """
    Events for one element. Strings among ``children`` become text events.

    >>> [e.type.value for e in element("a", "x", element("b"))]
    ['open', 'text', 'open', 'close', 'close']
    """
    yield open_element(name, attributes, namespace)
    for child in children:
        if isinstance(child, str):
            yield text(child)
        elif isinstance(child, Event):
            yield child
        else:
            yield from child
    yield close_element()
