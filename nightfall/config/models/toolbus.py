"""Tool bus and provider configuration models."""

from typing import Literal, Self

from pydantic import BaseModel, Field, SecretStr, model_validator

ToolModeName = Literal["real", "stub", "record", "replay"]


class CircuitBreakerConfig(BaseModel):
    """Per-provider circuit breaker settings."""

    failure_threshold: int = Field(
        default=3, gt=0, description="Consecutive failures that open the breaker"
    )
    failure_window_seconds: float = Field(
        default=300.0, gt=0, description="Failures older than this are forgotten"
    )
    cooldown_seconds: float = Field(
        default=120.0, gt=0, description="How long the breaker stays open"
    )


class ToolBusConfig(BaseModel):
    """Configuration for the tool bus and its implementations."""

    mode: ToolModeName = Field(default="real", description="Tool implementation mode")
    record_path: str = Field(
        default="/tmp/nf_tool_record.json",
        description="Fixture file used by record/replay modes",
    )
    record_source: Literal["real", "stub"] = Field(
        default="real", description="Implementation recorded in record mode"
    )
    call_timeout_seconds: float = Field(
        default=12.0, gt=0, description="Timeout applied by the bus to every call"
    )
    http_timeout_seconds: float = Field(default=2.5, gt=0)
    retries: int = Field(default=1, ge=0)
    retry_delay_seconds: float = Field(default=0.3, ge=0.05)
    circuit: CircuitBreakerConfig = Field(default_factory=CircuitBreakerConfig)
    places_provider: Literal["google", "nominatim"] = Field(default="google")
    weather_provider: Literal["openmeteo", "stub"] = Field(default="openmeteo")
    weather_city: str | None = Field(default=None)
    default_city: str = Field(default="Shanghai")
    max_places: int = Field(default=8, gt=0)
    google_places_api_key: SecretStr | None = Field(
        default=None, description="API key (prefer env var)"
    )
    user_agent: str = Field(default="nightfall-orchestrator/1.0")

    @property
    def provider_budget_seconds(self) -> float:
        """Worst-case time one provider spends across all retries."""
        attempts = self.retries + 1
        backoff = self.retry_delay_seconds * self.retries * attempts / 2
        return attempts * self.http_timeout_seconds + backoff

    @model_validator(mode="after")
    def check_timeouts(self) -> Self:
        # places and weather calls each make up to two upstream requests
        if 2 * self.provider_budget_seconds > self.call_timeout_seconds:
            raise ValueError(
                f"call_timeout_seconds={self.call_timeout_seconds:g} is shorter than two "
                f"provider attempts ({self.provider_budget_seconds:g}s each)"
            )
        return self
