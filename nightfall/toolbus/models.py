"""Tool names and result shapes exchanged over the tool bus."""

from typing import Literal

from pydantic import BaseModel, Field

ToolName = Literal[
    "places.search",
    "maps.link",
    "maps.arrival_glance",
    "maps.send_to_car",
    "weather.forecast",
    "storage.pocket.append",
    "storage.whispers.append",
]

ToolMode = Literal["real", "stub", "record", "replay"]

ALL_TOOLS: tuple[ToolName, ...] = (
    "places.search",
    "maps.link",
    "maps.arrival_glance",
    "maps.send_to_car",
    "weather.forecast",
    "storage.pocket.append",
    "storage.whispers.append",
)

# Host-level enrichment and outcome execution use these regardless of skill permissions
SYSTEM_TOOLS: tuple[ToolName, ...] = ("maps.link", "maps.arrival_glance", "maps.send_to_car")


class PlaceResult(BaseModel):
    """One place returned by places.search."""

    place_id: str
    title: str
    tag: str
    photo_ref: str | None = None
    photo_url: str | None = None


class MapLink(BaseModel):
    url: str


class ArrivalGlance(BaseModel):
    """Short "last few hundred meters" checklist."""

    lines: list[str] = Field(default_factory=list)


class WeatherForecast(BaseModel):
    rain_flag: bool
    summary: str


class Ack(BaseModel):
    ok: bool = True
