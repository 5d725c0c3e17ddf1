"""Append-only JSONL implementation of AuditSink."""

from pathlib import Path

from nightfall.audit.models import AuditEvent, parse_event
from nightfall.audit.store import AuditSink


class JsonlAuditSink(AuditSink):
    """Writes one JSON document per line.

    Queries scan the whole file, which is fine for local development and
    fixture capture but not for long-lived deployments.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: AuditEvent) -> None:
        with self._path.open("a", encoding="utf-8") as f:
            f.write(event.model_dump_json() + "\n")

    def _read(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        events: list[AuditEvent] = []
        with self._path.open(encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    events.append(parse_event(line))
        return events

    def tail(self, n: int) -> list[AuditEvent]:
        events = self._read()
        return events[-max(1, n):]

    def by_trace(self, trace_id: str) -> list[AuditEvent]:
        return [e for e in self._read() if e.trace_id == trace_id]
