"""Tool bus: allowlisted, audited, resilient access to external systems."""

from nightfall.toolbus.bus import ToolBus, summarize_args
from nightfall.toolbus.circuit import CircuitBreaker, CircuitBreakerRegistry, CircuitState
from nightfall.toolbus.factory import build_recorder, resolve_tools
from nightfall.toolbus.models import (
    ALL_TOOLS,
    SYSTEM_TOOLS,
    Ack,
    ArrivalGlance,
    MapLink,
    PlaceResult,
    ToolMode,
    ToolName,
    WeatherForecast,
)
from nightfall.toolbus.providers import HttpTools, StubTools, ToolImplementations
from nightfall.toolbus.recorder import ToolRecorder, record_key

__all__ = [
    "ALL_TOOLS",
    "Ack",
    "ArrivalGlance",
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "CircuitState",
    "HttpTools",
    "MapLink",
    "PlaceResult",
    "SYSTEM_TOOLS",
    "StubTools",
    "ToolBus",
    "ToolImplementations",
    "ToolMode",
    "ToolName",
    "ToolRecorder",
    "WeatherForecast",
    "build_recorder",
    "record_key",
    "resolve_tools",
    "summarize_args",
]
