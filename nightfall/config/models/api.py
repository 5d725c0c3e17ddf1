"""API server configuration model."""

from pydantic import BaseModel, Field


class APIConfig(BaseModel):
    """HTTP wiring configuration."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=4000, gt=0, lt=65536)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = Field(default=False)
    default_audit_tail: int = Field(default=50, gt=0)
