"""Tests for the capability-scoped tool bus."""

import asyncio

import pytest
from conftest import SpyTools

from nightfall.errors import CapabilityDeniedError, ToolTimeoutError, UpstreamUnavailableError
from nightfall.toolbus.bus import ToolBus, summarize_args
from nightfall.toolbus.models import ALL_TOOLS, MapLink
from nightfall.toolbus.recorder import ToolRecorder, record_key


class SlowTools(SpyTools):
    async def maps_link(self, query: str) -> MapLink:
        self._hit("maps.link")
        await asyncio.sleep(1)
        return MapLink(url="never")


class TestCapabilities:
    """Allowlist enforcement."""

    @pytest.mark.asyncio
    async def test_denied_tool_never_reaches_implementation(self, spy_tools, audit):
        bus = ToolBus(["maps.link"], spy_tools, audit)

        with pytest.raises(CapabilityDeniedError):
            await bus.places_search("cafe")

        assert spy_tools.calls["places.search"] == 0
        violations = audit.of_type("policy_violation")
        assert [v.code for v in violations] == ["tool_not_allowed"]

    @pytest.mark.asyncio
    async def test_allowed_tool_is_audited(self, spy_tools, audit):
        bus = ToolBus(["maps.link"], spy_tools, audit)

        link = await bus.maps_link("quiet bar")

        assert link.url.startswith("https://www.google.com/maps/search/")
        calls = audit.of_type("tool_call")
        assert len(calls) == 1
        assert calls[0].ok is True
        assert calls[0].tool == "maps.link"

    @pytest.mark.asyncio
    async def test_scoped_bus_shares_backend(self, spy_tools, audit):
        root = ToolBus(ALL_TOOLS, spy_tools, audit)
        scoped = root.scoped(["weather.forecast"])

        await scoped.weather_forecast("grid")
        with pytest.raises(CapabilityDeniedError):
            await scoped.maps_link("x")

        assert scoped.allowed_tools == frozenset({"weather.forecast"})
        assert spy_tools.calls["weather.forecast"] == 1

    @pytest.mark.asyncio
    async def test_places_search_caches_on_session(self, spy_tools, audit, session):
        bus = ToolBus(["places.search"], spy_tools, audit, session=session)

        places = await bus.places_search("tea")

        assert session.last_places == places
        assert len(places) == 3


class TestFailures:
    @pytest.mark.asyncio
    async def test_timeout_fails_only_that_call(self, audit):
        tools = SlowTools()
        bus = ToolBus(ALL_TOOLS, tools, audit, call_timeout_seconds=0.01)

        with pytest.raises(ToolTimeoutError):
            await bus.maps_link("x")
        ack = await bus.maps_send_to_car("https://example.com")

        assert ack.ok is True
        oks = [e.ok for e in audit.of_type("tool_call")]
        assert oks == [False, True]

    @pytest.mark.asyncio
    async def test_upstream_error_propagates_and_is_audited(self, audit):
        tools = SpyTools(fail={"weather.forecast"})
        bus = ToolBus(ALL_TOOLS, tools, audit)

        with pytest.raises(UpstreamUnavailableError):
            await bus.weather_forecast()

        assert audit.of_type("tool_call")[0].ok is False


class TestRecordReplay:
    @pytest.mark.asyncio
    async def test_record_then_replay(self, tmp_path, audit):
        path = tmp_path / "record.json"
        recorder = ToolRecorder("record", path)
        bus = ToolBus(ALL_TOOLS, SpyTools(), audit, recorder=recorder)
        recorded = await bus.places_search("noodles", grid_id="g1")

        replay_tools = SpyTools()
        replay = ToolBus(ALL_TOOLS, replay_tools, audit, recorder=ToolRecorder("replay", path))
        replayed = await replay.places_search("noodles", grid_id="g1")

        assert replayed == recorded
        assert replay_tools.calls["places.search"] == 0
        assert audit.of_type("tool_call")[-1].replayed is True

    @pytest.mark.asyncio
    async def test_replay_miss_falls_through(self, tmp_path, audit):
        tools = SpyTools()
        bus = ToolBus(ALL_TOOLS, tools, audit, recorder=ToolRecorder("replay", tmp_path / "none.json"))

        await bus.maps_link("unrecorded")

        assert tools.calls["maps.link"] == 1

    def test_record_file_format(self, tmp_path):
        path = tmp_path / "record.json"
        recorder = ToolRecorder("record", path)
        recorder.record("maps.link", {"query": "q"}, {"url": "u"})

        entry = ToolRecorder("replay", path).records[record_key("maps.link", {"query": "q"})]
        assert entry["tool"] == "maps.link"
        assert entry["result"] == {"url": "u"}

    def test_other_modes_are_noops(self, tmp_path):
        recorder = ToolRecorder("stub", tmp_path / "r.json")
        recorder.record("maps.link", {}, {"url": "u"})
        assert recorder.replay("maps.link", {}) is None
        assert not (tmp_path / "r.json").exists()


def test_summarize_args_is_bounded():
    summary = summarize_args({"query": "x" * 500})
    assert len(summary) <= 180
    assert summary.endswith("…")
