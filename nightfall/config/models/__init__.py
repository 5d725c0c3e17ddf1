"""Configuration model exports.

This module exports all configuration models for easy access:

    from nightfall.config.models import RouterConfig, ToolBusConfig
"""

from nightfall.config.models.api import APIConfig
from nightfall.config.models.channels import ChannelBudgetConfig, CircleConfig
from nightfall.config.models.observability import AuditConfig, ObservabilityConfig
from nightfall.config.models.policy import (
    BundleLimits,
    CandidateLimits,
    LinterLimits,
    PolicyConfig,
    RateLimitConfig,
)
from nightfall.config.models.router import RouterConfig
from nightfall.config.models.toolbus import CircuitBreakerConfig, ToolBusConfig

__all__ = [
    "APIConfig",
    "AuditConfig",
    "BundleLimits",
    "CandidateLimits",
    "ChannelBudgetConfig",
    "CircleConfig",
    "CircuitBreakerConfig",
    "LinterLimits",
    "ObservabilityConfig",
    "PolicyConfig",
    "RateLimitConfig",
    "RouterConfig",
    "ToolBusConfig",
]
