"""
Step timing for parses.

``log_step`` wraps a unit of work (one ``Binder.parse`` call, say) in a span:
the span id goes into the log context so every event emitted inside the
block carries it, and the closing event reports ``duration_ms`` plus any
metrics the block attached.

    with log_step("binder.parse", document="web.xml") as span:
        root = engine.replay(events)
        span.add_metric("elements", engine.element_count)
"""

import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from treebind.logging.context import get_context, get_logger, push_context


@dataclass
class TimingResult:
    """One timed span: identity, clock readings and attached metrics."""

    step: str
    span_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    parent_span_id: str | None = None
    started_at: float = field(default_factory=time.perf_counter)
    ended_at: float | None = None
    metrics: dict[str, Any] = field(default_factory=dict)
    status: str = "ok"
    error_info: dict[str, Any] | None = None

    @property
    def duration_ms(self) -> float:
        end = self.ended_at if self.ended_at is not None else time.perf_counter()
        return (end - self.started_at) * 1000

    def add_metric(self, key: str, value: Any) -> "TimingResult":
        self.metrics[key] = value
        return self

    def fail(self, error: BaseException) -> None:
        self.status = "error"
        self.error_info = {"error_type": type(error).__name__, "error_message": str(error)}
        # treebind errors carry their own structured payload
        to_dict = getattr(error, "to_dict", None)
        if callable(to_dict):
            self.error_info["error"] = to_dict()

    def to_log_dict(self) -> dict[str, Any]:
        fields: dict[str, Any] = {"duration_ms": round(self.duration_ms, 2), "span_id": self.span_id}
        if self.parent_span_id:
            fields["parent_span_id"] = self.parent_span_id
        fields.update(self.metrics)
        if self.status != "ok":
            fields["status"] = self.status
            fields.update(self.error_info or {})
        return fields


@contextmanager
def log_step(event: str, level: str = "info", **extra_metrics) -> Iterator[TimingResult]:
    """Time the enclosed block and log ``<event>.start`` / ``.end`` / ``.error``.

    The span is pushed onto the log context for the duration of the block and
    popped again on every exit path. Errors are logged and re-raised.
    """
    log = get_logger("treebind.timing")
    parent = get_context().span_id
    span = TimingResult(step=event, parent_span_id=parent, metrics=dict(extra_metrics))
    token = push_context(span_id=span.span_id, parent_span_id=parent, step=event)

    log.debug(f"{event}.start", span_id=span.span_id, **extra_metrics)
    try:
        yield span
    except BaseException as e:
        span.ended_at = time.perf_counter()
        span.fail(e)
        log.error(f"{event}.error", **span.to_log_dict())
        raise
    finally:
        if span.ended_at is None:
            span.ended_at = time.perf_counter()
        token.restore()

    getattr(log, level)(f"{event}.end", **span.to_log_dict())
