"""Request and response models for the HTTP surface."""

from typing import Any

from pydantic import BaseModel, Field

from nightfall.audit.models import AuditEvent
from nightfall.context import ContextSignals


class BootstrapRequest(BaseModel):
    """Start (or restart) a session; a new id is issued when omitted."""

    session_id: str | None = None
    context: ContextSignals = Field(default_factory=ContextSignals)


class ActionRequest(BaseModel):
    session_id: str
    action: str = Field(min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)
    context: ContextSignals = Field(default_factory=ContextSignals)


class AuditResponse(BaseModel):
    events: list[AuditEvent]


class TraceResponse(BaseModel):
    trace_id: str
    events: list[AuditEvent]


class HealthResponse(BaseModel):
    status: str = "ok"
    app: str
    skills: int
    tool_mode: str


class ErrorBody(BaseModel):
    """Machine-readable code plus a human-readable message."""

    code: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error response.

    Example:
        {
            "error": {"code": "rate_limited", "message": "Rate limit: try later ..."},
            "session_id": "s1",
            "trace_id": "9f2c..."
        }
    """

    error: ErrorBody
    session_id: str | None = None
    trace_id: str | None = None
