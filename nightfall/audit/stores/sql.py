"""SQLAlchemy implementation of AuditSink.

Table: audit_events(id, ts, trace_id, session_id, type, payload)
"""

import sqlalchemy as sa

from nightfall.audit.models import AuditEvent, parse_event
from nightfall.audit.store import AuditSink

metadata = sa.MetaData()

audit_events = sa.Table(
    "audit_events",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("ts", sa.String(40), nullable=False),
    sa.Column("trace_id", sa.String(64)),
    sa.Column("session_id", sa.String(64)),
    sa.Column("type", sa.String(32), nullable=False),
    sa.Column("payload", sa.Text, nullable=False),
    sa.Index("idx_audit_trace", "trace_id"),
    sa.Index("idx_audit_ts", "ts"),
)


class SqlAuditSink(AuditSink):
    """Append-only audit table reachable through any SQLAlchemy URL."""

    def __init__(self, url_or_engine: str | sa.Engine, *, max_query_events: int = 500) -> None:
        if isinstance(url_or_engine, str):
            self._engine = sa.create_engine(url_or_engine)
        else:
            self._engine = url_or_engine
        self._max_query_events = max_query_events
        metadata.create_all(self._engine)

    def append(self, event: AuditEvent) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                audit_events.insert().values(
                    ts=event.ts.isoformat(),
                    trace_id=event.trace_id,
                    session_id=event.session_id,
                    type=event.type,
                    payload=event.model_dump_json(),
                )
            )

    def tail(self, n: int) -> list[AuditEvent]:
        limit = max(1, min(self._max_query_events, n))
        stmt = (
            sa.select(audit_events.c.payload)
            .order_by(audit_events.c.id.desc())
            .limit(limit)
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).scalars().all()
        return [parse_event(p) for p in reversed(rows)]

    def by_trace(self, trace_id: str) -> list[AuditEvent]:
        stmt = (
            sa.select(audit_events.c.payload)
            .where(audit_events.c.trace_id == trace_id)
            .order_by(audit_events.c.id.asc())
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).scalars().all()
        return [parse_event(p) for p in rows]

    def close(self) -> None:
        self._engine.dispose()
