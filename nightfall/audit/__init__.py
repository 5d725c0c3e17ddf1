"""Audit trail: immutable events, request-scoped context and durable sinks."""

from nightfall.audit.log import AuditLog, TraceContext, audit_context, current_trace
from nightfall.audit.models import (
    AuditEvent,
    PolicyClipEvent,
    PolicyViolationEvent,
    SkillEndEvent,
    SkillStartEvent,
    ToolCallEvent,
    parse_event,
    utc_now,
)
from nightfall.audit.store import AuditSink

__all__ = [
    "AuditEvent",
    "AuditLog",
    "AuditSink",
    "PolicyClipEvent",
    "PolicyViolationEvent",
    "SkillEndEvent",
    "SkillStartEvent",
    "ToolCallEvent",
    "TraceContext",
    "audit_context",
    "current_trace",
    "parse_event",
    "utc_now",
]
