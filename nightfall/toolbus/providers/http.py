"""Network-backed tool implementations over httpx.

Every provider request goes through bounded retry with linear backoff and
a per-provider circuit breaker. When a provider is unavailable the tools
degrade to the stub answers so a night plan can still be composed.
"""

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx

from nightfall.config.models.toolbus import ToolBusConfig
from nightfall.errors import UpstreamUnavailableError
from nightfall.observability.logging import get_logger
from nightfall.toolbus.circuit import CircuitBreakerRegistry
from nightfall.toolbus.models import (
    Ack,
    ArrivalGlance,
    MapLink,
    PlaceResult,
    WeatherForecast,
)
from nightfall.toolbus.providers.base import ToolImplementations
from nightfall.toolbus.providers.stub import StubTools, maps_search_url

logger = get_logger(__name__)

GOOGLE_TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
OPEN_METEO_GEOCODE_URL = "https://geocoding-api.open-meteo.com/v1/search"
OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"

GRID_CITY_PREFIXES = {
    "sh": "Shanghai",
    "bj": "Beijing",
    "gz": "Guangzhou",
    "sz": "Shenzhen",
}


def photo_ref_to_token(photo_ref: str | None) -> str | None:
    if not photo_ref:
        return None
    return f"nf://photo/{photo_ref}"


class HttpTools(ToolImplementations):
    """Google Places / Nominatim search and Open-Meteo weather."""

    def __init__(
        self,
        config: ToolBusConfig,
        breakers: CircuitBreakerRegistry,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._breakers = breakers
        self._client = client
        self._owns_client = client is None
        self._fallback = StubTools()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": self._config.user_agent},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET ``url`` and decode JSON, retrying with linear backoff.

        Raises:
            UpstreamUnavailableError: After the last attempt fails
        """
        client = await self._ensure_client()
        retries = max(0, self._config.retries)
        delay = max(0.05, self._config.retry_delay_seconds)
        last_error: Exception | None = None

        for attempt in range(retries + 1):
            try:
                response = await client.get(
                    url,
                    params=params,
                    headers=headers,
                    timeout=self._config.http_timeout_seconds,
                )
                response.raise_for_status()
                return response.json()
            except (httpx.HTTPError, ValueError) as e:
                last_error = e
                logger.debug(
                    "provider_request_failed",
                    url=url,
                    attempt=attempt + 1,
                    error=str(e),
                )
                if attempt < retries:
                    await asyncio.sleep(delay * (attempt + 1))

        raise UpstreamUnavailableError(f"GET {url} failed: {last_error}") from last_error

    async def _guarded_json(
        self, key: str, url: str, params: dict[str, Any] | None = None
    ) -> Any:
        return await self._breakers.call(key, lambda: self.fetch_json(url, params=params))

    # Places

    async def _google_text_search(self, query: str) -> list[PlaceResult]:
        api_key = self._config.google_places_api_key
        if api_key is None or not api_key.get_secret_value():
            raise UpstreamUnavailableError("missing google_places_api_key")
        data = await self._guarded_json(
            "places.google",
            GOOGLE_TEXT_SEARCH_URL,
            {"query": query, "language": "zh-CN", "key": api_key.get_secret_value()},
        )
        if not isinstance(data, dict) or data.get("status") != "OK":
            status = data.get("error_message") or data.get("status") if isinstance(data, dict) else None
            raise UpstreamUnavailableError(str(status or "places_failed"))

        with decoding("google"):
            return [_google_place(r) for r in data.get("results") or []]

    async def _nominatim_search(self, query: str) -> list[PlaceResult]:
        data = await self._guarded_json(
            "places.nominatim",
            NOMINATIM_SEARCH_URL,
            {"format": "json", "q": query, "limit": 6},
        )
        if not isinstance(data, list):
            raise UpstreamUnavailableError("nominatim_failed")
        with decoding("nominatim"):
            return [
                PlaceResult(
                    place_id=str(r.get("place_id") or r.get("osm_id") or ""),
                    title=str(r.get("display_name") or r.get("name") or "Place"),
                    tag=str(r.get("type") or r.get("class") or "PLACE").upper(),
                )
                for r in data
            ]

    async def places_search(
        self, query: str, grid_id: str | None = None, time_window: str | None = None
    ) -> list[PlaceResult]:
        q = query or "quiet place"
        limit = self._config.max_places
        searches = [self._nominatim_search]
        if self._config.places_provider == "google":
            searches.insert(0, self._google_text_search)

        for search in searches:
            try:
                return (await search(q))[:limit]
            except UpstreamUnavailableError as e:
                logger.warning("places_provider_unavailable", provider=search.__name__, error=str(e))

        return await self._fallback.places_search(q, grid_id, time_window)

    # Maps

    async def maps_link(self, query: str) -> MapLink:
        # Search deep links need no API key
        return MapLink(url=maps_search_url(query))

    async def maps_arrival_glance(
        self,
        place_title: str | None = None,
        query: str | None = None,
        transport_mode: str | None = None,
    ) -> ArrivalGlance:
        # No origin is known, so only conservative guidance is given
        title = (place_title or query or "destination")[:60]
        return ArrivalGlance(
            lines=[
                "Walk: about 3-10 min depending on distance",
                f"Entrance: confirm the sign on arrival ({title})",
                "If crowded or the wait is over 10 min, switch to Plan B",
            ]
        )

    async def maps_send_to_car(self, url: str) -> Ack:
        return Ack()

    # Weather

    def city_for_grid(self, grid_id: str | None) -> str:
        base = (grid_id or "").lower()
        for prefix, city in GRID_CITY_PREFIXES.items():
            if base.startswith(prefix):
                return city
        return self._config.default_city

    async def _open_meteo(self, city: str) -> WeatherForecast:
        geo = await self._guarded_json(
            "weather.openmeteo",
            OPEN_METEO_GEOCODE_URL,
            {"name": city, "count": 1, "language": "zh", "format": "json"},
        )
        items = geo.get("results") if isinstance(geo, dict) else None
        if not items:
            raise UpstreamUnavailableError(f"geocode_not_found:{city}")
        with decoding("openmeteo"):
            lat, lon = float(items[0]["latitude"]), float(items[0]["longitude"])

        data = await self._guarded_json(
            "weather.openmeteo",
            OPEN_METEO_FORECAST_URL,
            {
                "latitude": lat,
                "longitude": lon,
                "current": "temperature_2m,precipitation",
                "hourly": "precipitation_probability,precipitation",
                "forecast_days": 1,
                "timezone": "auto",
            },
        )
        with decoding("openmeteo"):
            return _forecast(data)

    async def weather_forecast(self, grid_id: str | None = None, days: int | None = None) -> WeatherForecast:
        if self._config.weather_provider == "openmeteo":
            city = self._config.weather_city or self.city_for_grid(grid_id)
            try:
                return await self._open_meteo(city)
            except UpstreamUnavailableError as e:
                logger.warning("weather_provider_unavailable", city=city, error=str(e))
        return await self._fallback.weather_forecast(grid_id, days)

    # Storage is host-side; nothing leaves the process

    async def pocket_append(self, ticket: dict[str, Any]) -> Ack:
        return await self._fallback.pocket_append(ticket)

    async def whispers_append(self, note: dict[str, Any]) -> Ack:
        return await self._fallback.whispers_append(note)


@contextmanager
def decoding(provider: str) -> Iterator[None]:
    """Report a payload of unexpected shape as an unavailable provider."""
    try:
        yield
    except (KeyError, IndexError, TypeError, AttributeError, ValueError) as e:
        raise UpstreamUnavailableError(f"{provider}_malformed: {type(e).__name__}") from e


def _google_place(r: dict[str, Any]) -> PlaceResult:
    photos = r.get("photos") or []
    photo_ref = str(photos[0].get("photo_reference") or "").strip() if photos else ""
    types = r.get("types") or []
    return PlaceResult(
        place_id=str(r.get("place_id") or ""),
        title=str(r.get("name") or r.get("formatted_address") or "Place"),
        tag=str(types[0]).upper() if types else "PLACE",
        photo_ref=photo_ref or None,
        photo_url=photo_ref_to_token(photo_ref),
    )


def _forecast(data: dict[str, Any]) -> WeatherForecast:
    current = data.get("current") or {}
    hourly = data.get("hourly") or {}
    precip = float(current.get("precipitation") or 0)
    probs = hourly.get("precipitation_probability") or [0]
    prob = float(probs[0] or 0)
    temp = current.get("temperature_2m")
    summary = f"temp={'?' if temp is None else temp}C precip={precip}mm prob={prob:g}%"
    return WeatherForecast(rain_flag=precip > 0 or prob >= 50, summary=summary)
