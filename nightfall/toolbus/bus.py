"""ToolBus: the only path from skills to external systems.

Every call:
1. Asserts the tool is in the bus's allowlist (CapabilityDeniedError otherwise)
2. Serves a recorded result in replay mode
3. Runs the implementation under a per-call timeout
4. Records the result in record mode
5. Appends a tool_call audit event
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import TypeAdapter

from nightfall.audit.log import AuditLog
from nightfall.audit.models import PolicyViolationEvent, ToolCallEvent
from nightfall.errors import CapabilityDeniedError, ToolTimeoutError
from nightfall.observability.logging import get_logger
from nightfall.observability.metrics import TOOL_CALLS, TOOL_LATENCY
from nightfall.toolbus.models import (
    Ack,
    ArrivalGlance,
    MapLink,
    PlaceResult,
    ToolName,
    WeatherForecast,
)
from nightfall.toolbus.providers.base import ToolImplementations
from nightfall.toolbus.recorder import ToolRecorder

if TYPE_CHECKING:
    from nightfall.session.models import Session

logger = get_logger(__name__)

T = TypeVar("T")

_PLACES = TypeAdapter(list[PlaceResult])
_MAP_LINK = TypeAdapter(MapLink)
_GLANCE = TypeAdapter(ArrivalGlance)
_WEATHER = TypeAdapter(WeatherForecast)
_ACK = TypeAdapter(Ack)

ARGS_SUMMARY_CHARS = 180


def summarize_args(args: dict[str, Any]) -> str:
    s = json.dumps(args, ensure_ascii=False, default=str)
    return s if len(s) <= ARGS_SUMMARY_CHARS else s[: ARGS_SUMMARY_CHARS - 4] + "…"


def _compact(**kwargs: Any) -> dict[str, Any]:
    return {k: v for k, v in kwargs.items() if v is not None}


class ToolBus:
    """Capability-scoped facade over a ToolImplementations backend.

    A bus is cheap to build; the skill runtime creates one per invocation,
    scoped to exactly the skill's declared tools.
    """

    def __init__(
        self,
        allowed_tools: Iterable[ToolName],
        impl: ToolImplementations,
        audit: AuditLog,
        *,
        recorder: ToolRecorder | None = None,
        session: Session | None = None,
        call_timeout_seconds: float = 12.0,
    ) -> None:
        self._allowed: frozenset[str] = frozenset(allowed_tools)
        self._impl = impl
        self._audit = audit
        self._recorder = recorder
        self._session = session
        self._call_timeout = call_timeout_seconds

    @property
    def allowed_tools(self) -> frozenset[str]:
        return self._allowed

    def scoped(
        self, allowed_tools: Iterable[ToolName], session: Session | None = None
    ) -> ToolBus:
        """Return a bus sharing this backend with a different allowlist."""
        return ToolBus(
            allowed_tools,
            self._impl,
            self._audit,
            recorder=self._recorder,
            session=session,
            call_timeout_seconds=self._call_timeout,
        )

    async def aclose(self) -> None:
        await self._impl.aclose()

    def _ensure_allowed(self, tool: ToolName) -> None:
        if tool not in self._allowed:
            TOOL_CALLS.labels(tool=tool, outcome="denied").inc()
            self._audit.push(
                PolicyViolationEvent(code="tool_not_allowed", detail=f"tool={tool}")
            )
            logger.warning("tool_not_allowed", tool=tool, allowed=sorted(self._allowed))
            raise CapabilityDeniedError(tool)

    async def _call(
        self,
        tool: ToolName,
        args: dict[str, Any],
        fn: Callable[[], Awaitable[T]],
        adapter: TypeAdapter[T],
    ) -> T:
        self._ensure_allowed(tool)
        summary = summarize_args(args)

        if self._recorder is not None:
            replayed = self._recorder.replay(tool, args)
            if replayed is not None:
                self._audit.push(
                    ToolCallEvent(tool=tool, ok=True, duration_ms=0, args_summary=summary, replayed=True)
                )
                TOOL_CALLS.labels(tool=tool, outcome="replayed").inc()
                return adapter.validate_python(replayed)

        start = time.perf_counter()
        try:
            try:
                result = await asyncio.wait_for(fn(), timeout=self._call_timeout)
            except TimeoutError as e:
                raise ToolTimeoutError(tool, self._call_timeout) from e
        except Exception as e:
            duration_ms = int((time.perf_counter() - start) * 1000)
            self._audit.push(
                ToolCallEvent(tool=tool, ok=False, duration_ms=duration_ms, args_summary=summary)
            )
            TOOL_CALLS.labels(tool=tool, outcome="error").inc()
            logger.warning("tool_call_failed", tool=tool, error=str(e), error_type=type(e).__name__)
            raise

        duration = time.perf_counter() - start
        if self._recorder is not None:
            self._recorder.record(tool, args, adapter.dump_python(result, mode="json"))
        self._audit.push(
            ToolCallEvent(tool=tool, ok=True, duration_ms=int(duration * 1000), args_summary=summary)
        )
        TOOL_CALLS.labels(tool=tool, outcome="ok").inc()
        TOOL_LATENCY.labels(tool=tool).observe(duration)
        return result

    async def places_search(
        self, query: str, grid_id: str | None = None, time_window: str | None = None
    ) -> list[PlaceResult]:
        args = _compact(query=query, grid_id=grid_id, time_window=time_window)
        places = await self._call(
            "places.search",
            args,
            lambda: self._impl.places_search(query, grid_id, time_window),
            _PLACES,
        )
        if self._session is not None:
            self._session.last_places = list(places)
        return places

    async def maps_link(self, query: str) -> MapLink:
        return await self._call(
            "maps.link", {"query": query}, lambda: self._impl.maps_link(query), _MAP_LINK
        )

    async def maps_arrival_glance(
        self,
        place_title: str | None = None,
        query: str | None = None,
        transport_mode: str | None = None,
    ) -> ArrivalGlance:
        args = _compact(place_title=place_title, query=query, transport_mode=transport_mode)
        return await self._call(
            "maps.arrival_glance",
            args,
            lambda: self._impl.maps_arrival_glance(place_title, query, transport_mode),
            _GLANCE,
        )

    async def maps_send_to_car(self, url: str) -> Ack:
        return await self._call(
            "maps.send_to_car", {"url": url}, lambda: self._impl.maps_send_to_car(url), _ACK
        )

    async def weather_forecast(self, grid_id: str | None = None, days: int | None = None) -> WeatherForecast:
        return await self._call(
            "weather.forecast",
            _compact(grid_id=grid_id, days=days),
            lambda: self._impl.weather_forecast(grid_id, days),
            _WEATHER,
        )

    async def pocket_append(self, ticket: dict[str, Any]) -> Ack:
        # Payloads stay out of the audit trail and fixture keys
        return await self._call(
            "storage.pocket.append", {"kind": "ticket"}, lambda: self._impl.pocket_append(ticket), _ACK
        )

    async def whispers_append(self, note: dict[str, Any]) -> Ack:
        return await self._call(
            "storage.whispers.append", {"kind": "note"}, lambda: self._impl.whispers_append(note), _ACK
        )
