"""Typed value union carried by dataModelUpdate messages.

On the wire every value is a single-key object naming its variant
(``{"valueString": "x"}``, ``{"valueList": [...]}``, ...). Renderers store
the decoded plain value in the surface data model.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class StringValue(_WireModel):
    value_string: str = Field(alias="valueString")


class NumberValue(_WireModel):
    value_number: float | int = Field(alias="valueNumber")


class BooleanValue(_WireModel):
    value_boolean: bool = Field(alias="valueBoolean")


class NullValue(_WireModel):
    value_null: None = Field(default=None, alias="valueNull")


class ListValue(_WireModel):
    value_list: list[TypedValue] = Field(alias="valueList")


class MapEntry(_WireModel):
    key: str
    value: TypedValue


class MapValue(_WireModel):
    value_map: list[MapEntry] = Field(alias="valueMap")


_VARIANT_KEYS = {
    "valueString": "string",
    "value_string": "string",
    "valueNumber": "number",
    "value_number": "number",
    "valueBoolean": "boolean",
    "value_boolean": "boolean",
    "valueNull": "null",
    "value_null": "null",
    "valueList": "list",
    "value_list": "list",
    "valueMap": "map",
    "value_map": "map",
}

_MODEL_TAGS: dict[type, str] = {
    StringValue: "string",
    NumberValue: "number",
    BooleanValue: "boolean",
    NullValue: "null",
    ListValue: "list",
    MapValue: "map",
}


def _value_tag(v: Any) -> str | None:
    if isinstance(v, dict):
        for key in v:
            tag = _VARIANT_KEYS.get(key)
            if tag is not None:
                return tag
        return None
    return _MODEL_TAGS.get(type(v))


TypedValue = Annotated[
    Annotated[StringValue, Tag("string")]
    | Annotated[NumberValue, Tag("number")]
    | Annotated[BooleanValue, Tag("boolean")]
    | Annotated[NullValue, Tag("null")]
    | Annotated[ListValue, Tag("list")]
    | Annotated[MapValue, Tag("map")],
    Discriminator(_value_tag),
]

ListValue.model_rebuild()
MapEntry.model_rebuild()
MapValue.model_rebuild()


def to_value(x: Any) -> TypedValue:
    """Encode a plain Python value (or pydantic model) as a typed value."""
    if x is None:
        return NullValue()
    if isinstance(x, BaseModel):
        return to_value(x.model_dump(mode="json", exclude_none=True))
    if isinstance(x, Enum):
        return to_value(x.value)
    # bool before number: bool is an int subclass
    if isinstance(x, bool):
        return BooleanValue(value_boolean=x)
    if isinstance(x, int | float):
        return NumberValue(value_number=x)
    if isinstance(x, str):
        return StringValue(value_string=x)
    if isinstance(x, datetime | date):
        return StringValue(value_string=x.isoformat())
    if isinstance(x, list | tuple):
        return ListValue(value_list=[to_value(i) for i in x])
    if isinstance(x, dict):
        return MapValue(
            value_map=[MapEntry(key=str(k), value=to_value(v)) for k, v in x.items()]
        )
    return StringValue(value_string=str(x))


def to_plain(v: TypedValue) -> Any:
    """Decode a typed value into plain Python data."""
    match v:
        case StringValue(value_string=s):
            return s
        case NumberValue(value_number=n):
            return n
        case BooleanValue(value_boolean=b):
            return b
        case NullValue():
            return None
        case ListValue(value_list=items):
            return [to_plain(i) for i in items]
        case MapValue(value_map=entries):
            return {e.key: to_plain(e.value) for e in entries}
    raise TypeError(f"Unknown typed value: {type(v).__name__}")
