"""In-memory audit ring with ambient trace context.

Usage:
    audit = AuditLog(ring_size=200)
    with audit_context(trace_id="t1", session_id="s1"):
        audit.push(PolicyViolationEvent(code="bundle_missing_core"))

Events pushed inside the context inherit its trace/session ids unless they
already carry their own. The same ids are bound into structlog contextvars
so application logs and audit events can be joined.
"""

from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass

import structlog

from nightfall.audit.models import (
    AuditEvent,
    PolicyClipEvent,
    PolicyViolationEvent,
    event_code,
)
from nightfall.audit.store import AuditSink
from nightfall.observability.logging import get_logger
from nightfall.observability.metrics import POLICY_EVENTS

logger = get_logger(__name__)


@dataclass(frozen=True)
class TraceContext:
    """Request-scoped identifiers injected into audit events."""

    trace_id: str | None = None
    session_id: str | None = None


_current: ContextVar[TraceContext] = ContextVar("nightfall_trace", default=TraceContext())


def current_trace() -> TraceContext:
    """Return the active trace context (empty outside ``audit_context``)."""
    return _current.get()


@contextmanager
def audit_context(
    trace_id: str | None = None, session_id: str | None = None
) -> Iterator[TraceContext]:
    """Scope audit events and log lines to one request."""
    ctx = TraceContext(trace_id=trace_id, session_id=session_id)
    token = _current.set(ctx)
    try:
        with structlog.contextvars.bound_contextvars(
            trace_id=trace_id, session_id=session_id
        ):
            yield ctx
    finally:
        _current.reset(token)


class AuditLog:
    """Bounded ring buffer of recent audit events, mirrored to durable sinks."""

    def __init__(self, ring_size: int = 200, sinks: list[AuditSink] | None = None) -> None:
        self._events: deque[AuditEvent] = deque(maxlen=ring_size)
        self._sinks: list[AuditSink] = list(sinks or [])

    @property
    def sinks(self) -> list[AuditSink]:
        return list(self._sinks)

    def add_sink(self, sink: AuditSink) -> None:
        self._sinks.append(sink)

    def push(self, event: AuditEvent) -> AuditEvent:
        """Stamp the ambient context into ``event`` and record it."""
        ctx = _current.get()
        updates = {}
        if event.trace_id is None and ctx.trace_id is not None:
            updates["trace_id"] = ctx.trace_id
        if event.session_id is None and ctx.session_id is not None:
            updates["session_id"] = ctx.session_id
        if updates:
            event = event.model_copy(update=updates)

        self._events.append(event)

        if isinstance(event, PolicyClipEvent | PolicyViolationEvent):
            POLICY_EVENTS.labels(kind=event.type, code=event_code(event)).inc()

        for sink in self._sinks:
            try:
                sink.append(event)
            except Exception as e:
                # The ring keeps the event; a broken sink must not fail the action
                logger.warning(
                    "audit_sink_failed",
                    sink=type(sink).__name__,
                    event_type=event.type,
                    error=str(e),
                )
        return event

    def all(self) -> list[AuditEvent]:
        return list(self._events)

    def tail(self, n: int) -> list[AuditEvent]:
        """Return the last ``n`` events (at least one when any exist)."""
        if not self._events:
            return []
        k = max(1, min(len(self._events), n))
        return list(self._events)[-k:]

    def for_trace(self, trace_id: str) -> list[AuditEvent]:
        """Return a trace's events, preferring the first durable sink."""
        if self._sinks:
            return self._sinks[0].by_trace(trace_id)
        return [e for e in self._events if e.trace_id == trace_id]

    def of_type(self, event_type: str) -> list[AuditEvent]:
        return [e for e in self._events if e.type == event_type]

    def clear(self) -> None:
        self._events.clear()

    def close(self) -> None:
        for sink in self._sinks:
            sink.close()
