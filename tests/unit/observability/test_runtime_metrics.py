"""Tests that runtime components feed the Prometheus metrics."""

import pytest
from prometheus_client import REGISTRY

from nightfall.audit.models import PolicyViolationEvent
from nightfall.errors import CapabilityDeniedError
from nightfall.toolbus.bus import ToolBus


def _sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestMetrics:
    def test_policy_events_counted(self, audit):
        labels = {"kind": "policy_violation", "code": "metrics_probe"}
        before = _sample("nightfall_policy_events_total", **labels)

        audit.push(PolicyViolationEvent(code="metrics_probe"))

        assert _sample("nightfall_policy_events_total", **labels) == before + 1

    @pytest.mark.asyncio
    async def test_tool_outcomes_counted(self, spy_tools, audit):
        bus = ToolBus(["maps.link"], spy_tools, audit)
        ok_before = _sample("nightfall_tool_calls_total", tool="maps.link", outcome="ok")
        denied_before = _sample("nightfall_tool_calls_total", tool="places.search", outcome="denied")

        await bus.maps_link("bar")
        with pytest.raises(CapabilityDeniedError):
            await bus.places_search("bar")

        assert _sample("nightfall_tool_calls_total", tool="maps.link", outcome="ok") == ok_before + 1
        assert (
            _sample("nightfall_tool_calls_total", tool="places.search", outcome="denied")
            == denied_before + 1
        )

    def test_route_decisions_counted(self, context):
        from nightfall.providers.content.mock import MockContentGenerator
        from nightfall.router.router import SkillRouter
        from nightfall.skills.defaults import build_default_registry

        router = SkillRouter(build_default_registry(MockContentGenerator()))
        labels = {"kind": "route", "reason": "explicit_call"}
        before = _sample("nightfall_route_decisions_total", **labels)

        router.route("$coffee-dongwang now", context)

        assert _sample("nightfall_route_decisions_total", **labels) == before + 1
