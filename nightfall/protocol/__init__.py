"""UI-update message protocol consumed by decoupled renderers."""

from nightfall.protocol.messages import (
    BeginRenderingMessage,
    DataModelUpdateMessage,
    DeleteSurfaceMessage,
    Message,
    ProtocolParseError,
    SurfaceUpdateMessage,
    begin_rendering,
    component,
    data_update,
    delete_surface,
    dump_messages,
    parse_messages,
    surface_update,
)
from nightfall.protocol.store import SurfaceState, SurfaceStore
from nightfall.protocol.values import TypedValue, to_plain, to_value

__all__ = [
    "BeginRenderingMessage",
    "DataModelUpdateMessage",
    "DeleteSurfaceMessage",
    "Message",
    "ProtocolParseError",
    "SurfaceState",
    "SurfaceStore",
    "SurfaceUpdateMessage",
    "TypedValue",
    "begin_rendering",
    "component",
    "data_update",
    "delete_surface",
    "dump_messages",
    "parse_messages",
    "surface_update",
    "to_plain",
    "to_value",
]
