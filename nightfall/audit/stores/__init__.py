"""Durable audit sinks."""

from nightfall.audit.store import AuditSink
from nightfall.audit.stores.jsonl import JsonlAuditSink
from nightfall.audit.stores.sql import SqlAuditSink

__all__ = [
    "AuditSink",
    "JsonlAuditSink",
    "SqlAuditSink",
]
