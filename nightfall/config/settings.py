"""Root settings model for Nightfall configuration."""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from pydantic import Field
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from nightfall.config.models.api import APIConfig
from nightfall.config.models.channels import ChannelBudgetConfig, CircleConfig
from nightfall.config.models.observability import AuditConfig, ObservabilityConfig
from nightfall.config.models.policy import PolicyConfig, RateLimitConfig
from nightfall.config.models.router import RouterConfig
from nightfall.config.models.toolbus import ToolBusConfig

_toml_layer: ContextVar[dict[str, Any]] = ContextVar("nightfall_toml_layer", default={})


@contextmanager
def toml_layer(config: dict[str, Any]) -> Iterator[None]:
    """Expose merged TOML values to ``Settings()`` built inside the block."""
    token = _toml_layer.set(config)
    try:
        yield
    finally:
        _toml_layer.reset(token)


class TomlLayerSource(PydanticBaseSettingsSource):
    """Settings source backed by the active TOML layer."""

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self._data = _toml_layer.get()

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:  # noqa: ARG002
        value = self._data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        fields = self.settings_cls.model_fields
        return {k: v for k, v in self._data.items() if k in fields}


class Settings(BaseSettings):
    """Root configuration object.

    Precedence, highest first: constructor arguments, ``NIGHTFALL_*``
    environment variables (nested with ``__``), the TOML layers, then
    the model defaults below.
    """

    model_config = SettingsConfigDict(
        env_prefix="NIGHTFALL_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="nightfall", description="Application name for logging")
    debug: bool = Field(default=False, description="Enable debug mode")
    fallback_skill_id: str = Field(
        default="tonight_composer", description="Skill used when nothing else routes"
    )

    router: RouterConfig = Field(default_factory=RouterConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    toolbus: ToolBusConfig = Field(default_factory=ToolBusConfig)
    channels: ChannelBudgetConfig = Field(default_factory=ChannelBudgetConfig)
    circle: CircleConfig = Field(default_factory=CircleConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, env_settings, TomlLayerSource(settings_cls))

    @classmethod
    def from_toml(cls, config: dict[str, Any], **overrides: Any) -> "Settings":
        """Build settings on top of an already merged TOML dictionary."""
        with toml_layer(config):
            return cls(**overrides)
