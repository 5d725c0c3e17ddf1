"""Declarative UI-update messages.

A response to one user action is an ordered list of messages, each
addressing a single surface:

- surfaceUpdate: replace the surface's flat id -> component map
- dataModelUpdate: merge decoded typed values into the surface data model
- beginRendering: name the root component id
- deleteSurface: drop the surface

Each message serializes as a single-key object naming its kind.
"""

import json
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
)

from nightfall.protocol.values import TypedValue, to_value


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ComponentEntry(_WireModel):
    """One node of a surface's adjacency list.

    ``component`` is a single-key object: ``{"Text": {...props}}``.
    Children are referenced by opaque string ids.
    """

    id: str
    component: dict[str, dict[str, Any]]

    @field_validator("component")
    @classmethod
    def single_component_type(cls, v: dict[str, dict[str, Any]]) -> dict[str, dict[str, Any]]:
        if len(v) != 1:
            raise ValueError("component must name exactly one type")
        return v

    @property
    def type_name(self) -> str:
        return next(iter(self.component))


class DataEntry(_WireModel):
    key: str
    value: TypedValue


class SurfaceUpdate(_WireModel):
    surface_id: str = Field(alias="surfaceId")
    components: list[ComponentEntry]


class DataModelUpdate(_WireModel):
    surface_id: str = Field(alias="surfaceId")
    contents: list[DataEntry]


class BeginRendering(_WireModel):
    surface_id: str = Field(alias="surfaceId")
    root: str


class DeleteSurface(_WireModel):
    surface_id: str = Field(alias="surfaceId")


class SurfaceUpdateMessage(_WireModel):
    surface_update: SurfaceUpdate = Field(alias="surfaceUpdate")

    @property
    def surface_id(self) -> str:
        return self.surface_update.surface_id


class DataModelUpdateMessage(_WireModel):
    data_model_update: DataModelUpdate = Field(alias="dataModelUpdate")

    @property
    def surface_id(self) -> str:
        return self.data_model_update.surface_id


class BeginRenderingMessage(_WireModel):
    begin_rendering: BeginRendering = Field(alias="beginRendering")

    @property
    def surface_id(self) -> str:
        return self.begin_rendering.surface_id


class DeleteSurfaceMessage(_WireModel):
    delete_surface: DeleteSurface = Field(alias="deleteSurface")

    @property
    def surface_id(self) -> str:
        return self.delete_surface.surface_id


_MESSAGE_KEYS = {
    "surfaceUpdate": "surfaceUpdate",
    "surface_update": "surfaceUpdate",
    "dataModelUpdate": "dataModelUpdate",
    "data_model_update": "dataModelUpdate",
    "beginRendering": "beginRendering",
    "begin_rendering": "beginRendering",
    "deleteSurface": "deleteSurface",
    "delete_surface": "deleteSurface",
}

_MESSAGE_TAGS: dict[type, str] = {
    SurfaceUpdateMessage: "surfaceUpdate",
    DataModelUpdateMessage: "dataModelUpdate",
    BeginRenderingMessage: "beginRendering",
    DeleteSurfaceMessage: "deleteSurface",
}


def _message_tag(v: Any) -> str | None:
    if isinstance(v, dict):
        if len(v) != 1:
            return None
        return _MESSAGE_KEYS.get(next(iter(v)))
    return _MESSAGE_TAGS.get(type(v))


Message = Annotated[
    Annotated[SurfaceUpdateMessage, Tag("surfaceUpdate")]
    | Annotated[DataModelUpdateMessage, Tag("dataModelUpdate")]
    | Annotated[BeginRenderingMessage, Tag("beginRendering")]
    | Annotated[DeleteSurfaceMessage, Tag("deleteSurface")],
    Discriminator(_message_tag),
]

MessageListAdapter: TypeAdapter[list[Message]] = TypeAdapter(list[Message])


class ProtocolParseError(ValueError):
    """Raised when a message stream cannot be decoded."""


def parse_messages(text: str) -> list[Message]:
    """Parse either a JSON array of messages or a JSONL stream."""
    trimmed = text.strip()
    if not trimmed:
        return []

    if trimmed.startswith("["):
        raw = json.loads(trimmed)
        if not isinstance(raw, list):
            raise ProtocolParseError("expected an array of messages")
        return MessageListAdapter.validate_python(raw)

    raw_lines = []
    for idx, line in enumerate(l.strip() for l in trimmed.splitlines()):
        if not line:
            continue
        try:
            raw_lines.append(json.loads(line))
        except json.JSONDecodeError as e:
            raise ProtocolParseError(f"invalid JSON on line {idx + 1}: {line}") from e
    return MessageListAdapter.validate_python(raw_lines)


def dump_messages(messages: list[Message]) -> list[dict[str, Any]]:
    """Serialize messages to their wire (camelCase) form."""
    return MessageListAdapter.dump_python(messages, mode="json", by_alias=True)


# Builders


def component(node_id: str, type_name: str, **props: Any) -> ComponentEntry:
    return ComponentEntry(id=node_id, component={type_name: props})


def surface_update(surface_id: str, components: list[ComponentEntry]) -> SurfaceUpdateMessage:
    return SurfaceUpdateMessage(
        surface_update=SurfaceUpdate(surface_id=surface_id, components=components)
    )


def data_update(surface_id: str, contents: dict[str, Any]) -> DataModelUpdateMessage:
    """Build a dataModelUpdate from plain values, preserving key order."""
    return DataModelUpdateMessage(
        data_model_update=DataModelUpdate(
            surface_id=surface_id,
            contents=[DataEntry(key=k, value=to_value(v)) for k, v in contents.items()],
        )
    )


def begin_rendering(surface_id: str, root: str = "root") -> BeginRenderingMessage:
    return BeginRenderingMessage(begin_rendering=BeginRendering(surface_id=surface_id, root=root))


def delete_surface(surface_id: str) -> DeleteSurfaceMessage:
    return DeleteSurfaceMessage(delete_surface=DeleteSurface(surface_id=surface_id))
