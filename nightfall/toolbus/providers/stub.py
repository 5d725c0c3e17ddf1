"""Deterministic tool implementations for tests, demos and replay."""

from typing import Any
from urllib.parse import quote

from nightfall.toolbus.models import (
    Ack,
    ArrivalGlance,
    MapLink,
    PlaceResult,
    WeatherForecast,
)
from nightfall.toolbus.providers.base import ToolImplementations

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query={q}"


def maps_search_url(query: str) -> str:
    return MAPS_SEARCH_URL.format(q=quote(query or "Shanghai", safe=""))


class StubTools(ToolImplementations):
    """Fixed, offline answers shaped like the real providers'."""

    async def places_search(
        self, query: str, grid_id: str | None = None, time_window: str | None = None
    ) -> list[PlaceResult]:
        q = query or "quiet place"
        return [
            PlaceResult(place_id="p1", title=f"{q} - hotel lobby", tag="stable"),
            PlaceResult(place_id="p2", title=f"{q} - late cafe", tag="warm"),
            PlaceResult(place_id="p3", title=f"{q} - bookstore", tag="minimal"),
        ]

    async def maps_link(self, query: str) -> MapLink:
        return MapLink(url=maps_search_url(query))

    async def maps_arrival_glance(
        self,
        place_title: str | None = None,
        query: str | None = None,
        transport_mode: str | None = None,
    ) -> ArrivalGlance:
        title = (place_title or query or "destination")[:60]
        return ArrivalGlance(
            lines=[
                "Parking: nearest garage or curbside, as available",
                f"Entrance: confirm the sign once close ({title})",
                "Walk: 3-7 min; if it is full, switch to Plan B",
            ]
        )

    async def maps_send_to_car(self, url: str) -> Ack:
        return Ack()

    async def weather_forecast(self, grid_id: str | None = None, days: int | None = None) -> WeatherForecast:
        return WeatherForecast(rain_flag=False, summary="weather_stub: no precipitation data")

    async def pocket_append(self, ticket: dict[str, Any]) -> Ack:
        return Ack()

    async def whispers_append(self, note: dict[str, Any]) -> Ack:
        return Ack()
