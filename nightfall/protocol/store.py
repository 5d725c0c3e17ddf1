"""Reference fold of a message stream into per-surface state.

Renderers must apply messages strictly in order. The fold is idempotent:
re-applying an identical sequence yields the same state.
"""

from typing import Any

from pydantic import BaseModel, Field

from nightfall.protocol.messages import (
    BeginRenderingMessage,
    DataModelUpdateMessage,
    DeleteSurfaceMessage,
    Message,
    SurfaceUpdateMessage,
)
from nightfall.protocol.values import to_plain


class SurfaceState(BaseModel):
    """Render state of one surface."""

    surface_id: str
    components: dict[str, dict[str, Any]] = Field(default_factory=dict)
    root_id: str | None = None
    data_model: dict[str, Any] = Field(default_factory=dict)


class SurfaceStore:
    """Holds the folded state of every surface."""

    def __init__(self) -> None:
        self._surfaces: dict[str, SurfaceState] = {}

    @property
    def surfaces(self) -> dict[str, SurfaceState]:
        return dict(self._surfaces)

    def get(self, surface_id: str) -> SurfaceState | None:
        return self._surfaces.get(surface_id)

    def _current(self, surface_id: str) -> SurfaceState:
        state = self._surfaces.get(surface_id)
        if state is None:
            state = SurfaceState(surface_id=surface_id)
            self._surfaces[surface_id] = state
        return state

    def apply(self, message: Message) -> None:
        match message:
            case SurfaceUpdateMessage(surface_update=update):
                state = self._current(update.surface_id)
                # Wholesale replace, never merge
                state.components = {e.id: e.component for e in update.components}
            case DataModelUpdateMessage(data_model_update=update):
                state = self._current(update.surface_id)
                model = dict(state.data_model)
                for entry in update.contents:
                    model[entry.key] = to_plain(entry.value)
                state.data_model = model
            case BeginRenderingMessage(begin_rendering=begin):
                self._current(begin.surface_id).root_id = begin.root
            case DeleteSurfaceMessage(delete_surface=delete):
                self._surfaces.pop(delete.surface_id, None)
            case _:
                raise TypeError(f"Unknown message: {type(message).__name__}")

    def apply_all(self, messages: list[Message]) -> None:
        for message in messages:
            self.apply(message)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Plain, comparable view of every surface."""
        return {sid: s.model_dump() for sid, s in sorted(self._surfaces.items())}
