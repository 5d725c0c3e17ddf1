"""AuditSink abstract interface."""

from abc import ABC, abstractmethod

from nightfall.audit.models import AuditEvent


class AuditSink(ABC):
    """Durable, append-only mirror of the in-memory audit ring.

    Sinks keep every event ever pushed, so trace replay still works after
    the ring buffer has rotated.
    """

    @abstractmethod
    def append(self, event: AuditEvent) -> None:
        """Persist one event."""
        pass

    @abstractmethod
    def tail(self, n: int) -> list[AuditEvent]:
        """Return the last ``n`` events in execution order."""
        pass

    @abstractmethod
    def by_trace(self, trace_id: str) -> list[AuditEvent]:
        """Return every event of one trace in execution order."""
        pass

    def close(self) -> None:
        """Release underlying resources."""
        return None
