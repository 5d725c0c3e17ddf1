"""Observability and audit configuration models."""

from typing import Literal

from pydantic import BaseModel, Field


class ObservabilityConfig(BaseModel):
    """Logging configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="json")
    redact_pii: bool = Field(default=True)


class AuditConfig(BaseModel):
    """Audit ring buffer and durable sink configuration."""

    ring_size: int = Field(default=200, gt=0, description="Events kept in memory")
    jsonl_path: str | None = Field(
        default=None, description="Append-only JSONL mirror of every event"
    )
    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy URL for the audit_events table (e.g. sqlite:///audit.sqlite)",
    )
    max_query_events: int = Field(default=500, gt=0)
