"""Tool implementation selection by mode."""

from nightfall.config.models.toolbus import ToolBusConfig
from nightfall.toolbus.circuit import CircuitBreakerRegistry
from nightfall.toolbus.models import ToolMode
from nightfall.toolbus.providers.base import ToolImplementations
from nightfall.toolbus.providers.http import HttpTools
from nightfall.toolbus.providers.stub import StubTools
from nightfall.toolbus.recorder import ToolRecorder


def resolve_tools(
    config: ToolBusConfig,
    breakers: CircuitBreakerRegistry,
    mode: ToolMode | None = None,
) -> ToolImplementations:
    """Pick the backend for a tool mode.

    stub and replay use the stub tools (replay misses fall through to them);
    record captures either the real or the stub tools per ``record_source``.
    """
    mode = mode or config.mode
    if mode in ("stub", "replay"):
        return StubTools()
    if mode == "record" and config.record_source == "stub":
        return StubTools()
    return HttpTools(config, breakers)


def build_recorder(config: ToolBusConfig, mode: ToolMode | None = None) -> ToolRecorder:
    return ToolRecorder(mode or config.mode, config.record_path)
