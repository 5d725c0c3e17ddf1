"""Audit event models.

Audit events form a closed set of variants discriminated by ``type``.
Every event is immutable once created; the audit log stamps missing
trace/session ids from the ambient request context before storing it.
"""

from datetime import UTC, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class _AuditEventBase(BaseModel):
    """Fields shared by every audit event."""

    model_config = ConfigDict(frozen=True)

    ts: datetime = Field(default_factory=utc_now, description="Event time")
    trace_id: str | None = Field(default=None, description="Request trace id")
    session_id: str | None = Field(default=None, description="Owning session")


class SkillStartEvent(_AuditEventBase):
    """A skill invocation began."""

    type: Literal["skill_start"] = "skill_start"
    skill_id: str
    intent: str
    stage: str
    request_summary: str = ""


class SkillEndEvent(_AuditEventBase):
    """A skill invocation finished, successfully or not."""

    type: Literal["skill_end"] = "skill_end"
    skill_id: str
    ok: bool
    duration_ms: int = Field(ge=0)
    output_summary: str = ""


class ToolCallEvent(_AuditEventBase):
    """One tool bus call."""

    type: Literal["tool_call"] = "tool_call"
    tool: str
    ok: bool
    duration_ms: int = Field(ge=0)
    args_summary: str = ""
    replayed: bool = Field(default=False, description="Served from a recorded fixture")


class PolicyClipEvent(_AuditEventBase):
    """A field was shortened, a push dropped, or a value overridden."""

    type: Literal["policy_clip"] = "policy_clip"
    field: str
    before: int
    after: int
    note: str | None = None


class PolicyViolationEvent(_AuditEventBase):
    """Something had to be refused or repaired."""

    type: Literal["policy_violation"] = "policy_violation"
    code: str
    detail: str = ""


AuditEvent = Annotated[
    SkillStartEvent
    | SkillEndEvent
    | ToolCallEvent
    | PolicyClipEvent
    | PolicyViolationEvent,
    Field(discriminator="type"),
]

AuditEventAdapter: TypeAdapter[AuditEvent] = TypeAdapter(AuditEvent)


def parse_event(data: dict | str | bytes) -> AuditEvent:
    """Rebuild an audit event from its dict or JSON form."""
    if isinstance(data, dict):
        return AuditEventAdapter.validate_python(data)
    return AuditEventAdapter.validate_json(data)


def event_code(event: AuditEvent) -> str:
    """Short label for metrics: violation code, clipped field, or event type."""
    match event:
        case PolicyViolationEvent(code=code):
            return code
        case PolicyClipEvent(field=field):
            return field
        case SkillStartEvent() | SkillEndEvent() | ToolCallEvent():
            return event.type
