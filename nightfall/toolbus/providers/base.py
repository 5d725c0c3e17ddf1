"""ToolImplementations abstract interface."""

from abc import ABC, abstractmethod
from typing import Any

from nightfall.toolbus.models import (
    Ack,
    ArrivalGlance,
    MapLink,
    PlaceResult,
    WeatherForecast,
)


class ToolImplementations(ABC):
    """Concrete backends for every tool the bus can mediate.

    Stub, HTTP and recorded implementations are interchangeable; callers
    only ever go through the ToolBus.
    """

    @abstractmethod
    async def places_search(
        self, query: str, grid_id: str | None = None, time_window: str | None = None
    ) -> list[PlaceResult]:
        pass

    @abstractmethod
    async def maps_link(self, query: str) -> MapLink:
        pass

    @abstractmethod
    async def maps_arrival_glance(
        self,
        place_title: str | None = None,
        query: str | None = None,
        transport_mode: str | None = None,
    ) -> ArrivalGlance:
        pass

    @abstractmethod
    async def maps_send_to_car(self, url: str) -> Ack:
        pass

    @abstractmethod
    async def weather_forecast(self, grid_id: str | None = None, days: int | None = None) -> WeatherForecast:
        pass

    @abstractmethod
    async def pocket_append(self, ticket: dict[str, Any]) -> Ack:
        pass

    @abstractmethod
    async def whispers_append(self, note: dict[str, Any]) -> Ack:
        pass

    async def aclose(self) -> None:
        """Release network resources, if any."""
        return None
