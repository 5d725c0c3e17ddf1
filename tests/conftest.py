"""Shared test fixtures for the Nightfall test suite."""

from collections import Counter
from collections.abc import Callable, Generator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from nightfall.audit.log import AuditLog
from nightfall.context import ContextSignals
from nightfall.errors import UpstreamUnavailableError
from nightfall.session.models import Session
from nightfall.skills.base import Skill, SkillContext
from nightfall.skills.models import EmptyResult, SkillManifest, SkillRequest, SkillResult
from nightfall.toolbus.bus import ToolBus
from nightfall.toolbus.models import Ack, ArrivalGlance, MapLink, PlaceResult, WeatherForecast
from nightfall.toolbus.providers.stub import StubTools


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SpyTools(StubTools):
    """Stub tools that count calls and can be told to fail."""

    def __init__(self, fail: set[str] | None = None, places: list[PlaceResult] | None = None) -> None:
        self.calls: Counter[str] = Counter()
        self.fail = fail or set()
        self._places = places

    def _hit(self, tool: str) -> None:
        self.calls[tool] += 1
        if tool in self.fail:
            raise UpstreamUnavailableError(f"{tool} unavailable")

    async def places_search(
        self, query: str, grid_id: str | None = None, time_window: str | None = None
    ) -> list[PlaceResult]:
        self._hit("places.search")
        if self._places is not None:
            return list(self._places)
        return await super().places_search(query, grid_id, time_window)

    async def maps_link(self, query: str) -> MapLink:
        self._hit("maps.link")
        return await super().maps_link(query)

    async def maps_arrival_glance(
        self,
        place_title: str | None = None,
        query: str | None = None,
        transport_mode: str | None = None,
    ) -> ArrivalGlance:
        self._hit("maps.arrival_glance")
        return await super().maps_arrival_glance(place_title, query, transport_mode)

    async def maps_send_to_car(self, url: str) -> Ack:
        self._hit("maps.send_to_car")
        return await super().maps_send_to_car(url)

    async def weather_forecast(
        self, grid_id: str | None = None, days: int | None = None
    ) -> WeatherForecast:
        self._hit("weather.forecast")
        return await super().weather_forecast(grid_id, days)

    async def pocket_append(self, ticket: dict[str, Any]) -> Ack:
        self._hit("storage.pocket.append")
        return await super().pocket_append(ticket)

    async def whispers_append(self, note: dict[str, Any]) -> Ack:
        self._hit("storage.whispers.append")
        return await super().whispers_append(note)


class StaticSkill(Skill):
    """Skill with a fixed manifest that returns a canned result.

    Pass ``run_fn`` to script behaviour against the tool bus.
    """

    def __init__(
        self,
        skill_id: str,
        *,
        title: str | None = None,
        text: str = "",
        result: SkillResult | None = None,
        run_fn: Callable[..., Any] | None = None,
        **manifest: Any,
    ) -> None:
        manifest.setdefault("stages", ("finalize",))
        manifest.setdefault("intents", ("tonight_answer",))
        manifest.setdefault("allowed_surfaces", ("tonight",))
        self.manifest = SkillManifest(id=skill_id, title=title or skill_id, **manifest)
        self._text = text
        self._result = result or EmptyResult()
        self._run_fn = run_fn
        self.runs: list[SkillRequest] = []

    @property
    def search_text(self) -> str:
        return self._text or super().search_text

    async def run(self, request: SkillRequest, ctx: SkillContext, tools: ToolBus) -> SkillResult:
        self.runs.append(request)
        if self._run_fn is not None:
            return await self._run_fn(request, ctx, tools)
        return self._result


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache before and after each test."""
    from nightfall.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({"default.toml": "app_name = 'test'"})
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _create_toml_files


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def audit() -> AuditLog:
    return AuditLog(ring_size=200)


@pytest.fixture
def session() -> Session:
    return Session(session_id="s-test")


@pytest.fixture
def spy_tools() -> SpyTools:
    return SpyTools()


@pytest.fixture
def make_context() -> Callable[..., ContextSignals]:
    """Factory for context snapshots at a fixed local evening.

    Usage:
        ctx = make_context(hour=23, stealth=True, motion_state="driving")
    """

    def _make(
        hour: int = 22,
        *,
        stealth: bool = False,
        motion_state: str = "still",
        mode: str = "immersion",
        energy_band: str = "mid",
        social_temp: int = 1,
        grid_id: str = "grid_1km_test",
    ) -> ContextSignals:
        return ContextSignals.model_validate(
            {
                "time": {"now_ts": datetime(2026, 1, 10, hour, 30, tzinfo=UTC)},
                "location": {"grid_id": grid_id},
                "mobility": {"motion_state": motion_state},
                "user_state": {
                    "mode": mode,
                    "energy_band": energy_band,
                    "social_temp": social_temp,
                    "stealth": stealth,
                },
            }
        )

    return _make


@pytest.fixture
def context(make_context: Callable[..., ContextSignals]) -> ContextSignals:
    return make_context()
