"""Tests for the orchestrator state machine and side-surface effects."""

import pytest
from conftest import SpyTools, StaticSkill

from nightfall.audit.log import AuditLog
from nightfall.config.settings import Settings
from nightfall.errors import CapabilityDeniedError, RateLimitedError
from nightfall.orchestrator.effects import (
    EngineResponse,
    EnterFocus,
    OpenExternal,
    OpenWhispers,
    SetChannel,
    StyleHint,
    UserAction,
)
from nightfall.orchestrator.factory import build_orchestrator
from nightfall.policy.linter import FALLBACK_TITLE
from nightfall.protocol import programs
from nightfall.protocol.messages import data_update
from nightfall.protocol.store import SurfaceStore
from nightfall.providers.content.mock import MockContentGenerator
from nightfall.session.stores.inmemory import InMemorySessionStore
from nightfall.skills.builtin import TonightComposer
from nightfall.skills.models import (
    BundleResult,
    CuratorialBundle,
    Ending,
    PatchesResult,
)
from nightfall.skills.registry import SkillRegistry

SESSION = "s-flow"


def fold(*responses: EngineResponse) -> SurfaceStore:
    store = SurfaceStore()
    for response in responses:
        store.apply_all(response.messages)
    return store


def surface_ids(response: EngineResponse) -> list[str]:
    return [m.surface_id for m in response.messages]


def act(name: str, **payload) -> UserAction:
    return UserAction(name=name, payload=payload)


def _bundle(title: str = "Night market") -> CuratorialBundle:
    return CuratorialBundle(
        primary_ending=Ending(
            id="nm", title=title, action="NAVIGATE", payload={"query": title.lower()}
        ),
        plan_b=Ending(id="home", title="Head home", action="NAVIGATE"),
    )


@pytest.fixture
def sessions() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def build(spy_tools, audit, clock, sessions):
    """Factory for orchestrators sharing the test's tools, audit and clock."""

    def _build(registry: SkillRegistry | None = None, tools: SpyTools | None = None, **overrides):
        settings = Settings.from_toml({}, **overrides)
        return build_orchestrator(
            settings,
            generator=MockContentGenerator(),
            registry=registry,
            impl=tools or spy_tools,
            sessions=sessions,
            audit=audit,
            clock=clock,
        )

    return _build


@pytest.fixture
def orchestrator(build):
    return build()


class TestBootstrap:
    @pytest.mark.asyncio
    async def test_programs_every_surface(self, orchestrator, context):
        response = await orchestrator.bootstrap(SESSION, context, trace_id="t-boot")

        store = fold(response)
        assert set(store.surfaces) == set(programs.ALL_SURFACES)
        assert all(store.get(s).root_id == "root" for s in programs.ALL_SURFACES)
        assert store.get("tonight").data_model["ui"]["stage"] == "order"
        assert len(response.messages) == 3 * len(programs.ALL_SURFACES) + 5
        assert response.trace_id == "t-boot"
        assert response.session_id == SESSION

    @pytest.mark.asyncio
    async def test_shelf_hides_system_skills(self, orchestrator, context, sessions):
        await orchestrator.bootstrap(SESSION, context)

        session = await sessions.get(SESSION)
        ids = [item.id for item in session.discover_skills]
        assert "whispers_note" not in ids
        assert "coffee-dongwang" in ids
        assert session.discover_hero == session.discover_skills[0]
        coffee = next(item for item in session.discover_skills if item.id == "coffee-dongwang")
        assert coffee.tag == "COFFEE"
        assert coffee.image_ref == "nf://cover/coffee-dongwang"

    @pytest.mark.asyncio
    async def test_second_bootstrap_patches_are_budgeted(self, orchestrator, context, audit):
        await orchestrator.bootstrap(SESSION, context)
        again = await orchestrator.bootstrap(SESSION, context)

        assert len(again.messages) == 3 * len(programs.ALL_SURFACES)
        assert "surface:sky" in {e.field for e in audit.of_type("policy_clip")}


class TestTonightFlow:
    @pytest.mark.asyncio
    async def test_short_order_asks_to_clarify(self, orchestrator, context, sessions):
        response = await orchestrator.dispatch(
            SESSION, act("TONIGHT_SUBMIT_ORDER", text="cafe"), context
        )

        tonight = fold(response).get("tonight").data_model
        assert tonight["ui"]["stage"] == "clarify"
        assert tonight["tonight"]["order_text"] == "cafe"
        session = await sessions.get(SESSION)
        assert set(session.clarify_choice_map) == set(tonight["tonight"]["choices"])
        assert session.clarify_choice_map["Steady · safest pick"] == "tonight_composer"

    @pytest.mark.asyncio
    async def test_blank_order_is_ignored(self, orchestrator, context):
        response = await orchestrator.dispatch(SESSION, act("TONIGHT_SUBMIT_ORDER", text="  "), context)
        assert response.messages == []
        assert response.effects == []

    @pytest.mark.asyncio
    async def test_clarify_choice_runs_mapped_skill(self, orchestrator, context, sessions):
        await orchestrator.dispatch(SESSION, act("TONIGHT_SUBMIT_ORDER", text="cafe"), context)

        response = await orchestrator.dispatch(
            SESSION, act("TONIGHT_SELECT_CHOICE", choice="Steady · safest pick"), context
        )

        assert fold(response).get("tonight").data_model["ui"]["stage"] == "result"
        session = await sessions.get(SESSION)
        assert session.active_skill_id == "tonight_composer"
        assert session.clarify_choice_map is None
        assert session.last_bundle is not None

    @pytest.mark.asyncio
    async def test_unmapped_choice_reroutes_with_order(self, orchestrator, context, sessions):
        await orchestrator.dispatch(SESSION, act("TONIGHT_SUBMIT_ORDER", text="cafe"), context)

        response = await orchestrator.dispatch(
            SESSION, act("TONIGHT_SELECT_CHOICE", choice="zz"), context
        )

        assert (await sessions.get(SESSION)).active_skill_id == "coffee-dongwang"
        assert fold(response).get("tonight").data_model["ui"]["stage"] == "candidate"

    @pytest.mark.asyncio
    async def test_unroutable_choice_uses_fallback(self, orchestrator, context, sessions):
        await orchestrator.dispatch(SESSION, act("TONIGHT_SUBMIT_ORDER", text="wine"), context)

        await orchestrator.dispatch(SESSION, act("TONIGHT_SELECT_CHOICE", choice="x"), context)

        assert (await sessions.get(SESSION)).active_skill_id == "tonight_composer"

    @pytest.mark.asyncio
    async def test_explicit_call_shows_candidates(self, orchestrator, context, sessions, spy_tools):
        response = await orchestrator.dispatch(
            SESSION, act("TONIGHT_SUBMIT_ORDER", text="$coffee-dongwang somewhere late"), context
        )

        tonight = fold(response).get("tonight").data_model
        assert tonight["ui"]["stage"] == "candidate"
        assert tonight["tonight"]["skill_title"] == "Coffee oracle"
        pool = tonight["candidate_pool"]
        assert [c["id"] for c in pool] == ["p1", "p2", "p3"]
        assert all(c["image_ref"].startswith("nf://") for c in pool)
        assert spy_tools.calls["places.search"] == 1

        session = await sessions.get(SESSION)
        assert session.active_skill_id == "coffee-dongwang"
        assert [c.id for c in session.last_candidates] == ["p1", "p2", "p3"]

    @pytest.mark.asyncio
    async def test_select_candidate_renders_result(self, orchestrator, context, sessions, spy_tools):
        await orchestrator.dispatch(
            SESSION, act("TONIGHT_SUBMIT_ORDER", text="$coffee-dongwang somewhere late"), context
        )

        response = await orchestrator.dispatch(
            SESSION, act("TONIGHT_SELECT_CANDIDATE", id="p2"), context
        )

        assert surface_ids(response)[:3] == ["tonight"] * 3
        assert {"radio", "veil", "discover"} <= set(surface_ids(response))
        store = fold(response)
        bundle = store.get("tonight").data_model["bundle"]
        assert bundle["primary_ending"]["place_id"] == "p2"
        payload = bundle["primary_ending"]["payload"]
        assert payload["nav_url"].startswith("https://")
        assert len(payload["arrival_glance_lines"]) == 3
        assert bundle["media_pack"]["cover_ref"].startswith("nf://")
        assert spy_tools.calls["maps.link"] >= 1

        session = await sessions.get(SESSION)
        assert session.last_bundle.primary_ending.place_id == "p2"

    @pytest.mark.asyncio
    async def test_select_candidate_needs_active_skill(self, orchestrator, context):
        response = await orchestrator.dispatch(SESSION, act("TONIGHT_SELECT_CANDIDATE", id="p1"), context)
        assert response.messages == []

    @pytest.mark.asyncio
    async def test_refresh_rotates_pool(self, orchestrator, context, sessions):
        await orchestrator.dispatch(
            SESSION, act("TONIGHT_SUBMIT_ORDER", text="$coffee-dongwang somewhere late"), context
        )

        response = await orchestrator.dispatch(SESSION, act("TONIGHT_REFRESH_CANDIDATES"), context)

        pool = fold(response).get("tonight").data_model["candidate_pool"]
        assert [c["id"] for c in pool] == ["p2", "p3", "p1"]
        assert (await sessions.get(SESSION)).candidate_variant == 1

    @pytest.mark.asyncio
    async def test_refresh_without_skill_is_noop(self, orchestrator, context):
        response = await orchestrator.dispatch(SESSION, act("TONIGHT_REFRESH_CANDIDATES"), context)
        assert response.messages == []

    @pytest.mark.asyncio
    async def test_reset_returns_to_order(self, orchestrator, context, sessions):
        await orchestrator.dispatch(
            SESSION, act("TONIGHT_SUBMIT_ORDER", text="$coffee-dongwang somewhere late"), context
        )

        response = await orchestrator.dispatch(SESSION, act("TONIGHT_BACK_TO_ORDER"), context)

        assert fold(response).get("tonight").data_model["ui"]["stage"] == "order"
        session = await sessions.get(SESSION)
        assert session.active_skill_id == ""
        assert session.last_candidates == []

    @pytest.mark.asyncio
    async def test_discover_select_switches_channel_first(self, orchestrator, context, sessions):
        response = await orchestrator.dispatch(
            SESSION,
            act("DISCOVER_SELECT_SKILL", id="bookstore-refuge", item={"prompt": "quiet shelves"}),
            context,
        )

        assert response.effects[0] == SetChannel(channel="tonight")
        assert fold(response).get("tonight").data_model["ui"]["stage"] == "candidate"
        session = await sessions.get(SESSION)
        assert session.last_order_text == "quiet shelves"

    @pytest.mark.asyncio
    async def test_discover_select_unknown_skill(self, orchestrator, context):
        response = await orchestrator.dispatch(SESSION, act("DISCOVER_SELECT_SKILL", id="ghost"), context)
        assert response.effects == []

    @pytest.mark.asyncio
    async def test_composer_emits_style_hint(self, orchestrator, make_context):
        context = make_context(motion_state="driving")

        response = await orchestrator.dispatch(
            SESSION, act("TONIGHT_SUBMIT_ORDER", text="$tonight_composer anything is fine"), context
        )

        hints = [e for e in response.effects if isinstance(e, StyleHint)]
        assert hints and hints[0].hint.ui_mode_hint == "drive_safe"


class TestNoResultHandling:
    @pytest.mark.asyncio
    async def test_failed_finalize_renders_fallback(self, build, context, audit):
        async def boom(request, ctx, tools):
            raise RuntimeError("generator down")

        registry = SkillRegistry([StaticSkill("flaky", run_fn=boom)])
        orchestrator = build(registry, fallback_skill_id="flaky")

        response = await orchestrator.dispatch(
            SESSION, act("TONIGHT_SUBMIT_ORDER", text="$flaky anything please"), context
        )

        bundle = fold(response).get("tonight").data_model["bundle"]
        assert bundle["primary_ending"]["title"] == FALLBACK_TITLE
        failed = [e for e in audit.of_type("policy_violation") if e.code == "skill_failed"]
        assert failed[0].detail == "flaky stage=finalize error=RuntimeError"

    @pytest.mark.asyncio
    async def test_empty_finalize_renders_audited_fallback(self, build, context, audit):
        orchestrator = build(SkillRegistry([StaticSkill("blank")]), fallback_skill_id="blank")

        response = await orchestrator.dispatch(
            SESSION, act("TONIGHT_SUBMIT_ORDER", text="$blank anything please"), context
        )

        bundle = fold(response).get("tonight").data_model["bundle"]
        assert bundle["primary_ending"]["title"] == FALLBACK_TITLE
        codes = [e.code for e in audit.of_type("policy_violation")]
        assert codes == ["skill_no_bundle"]
        assert audit.of_type("policy_violation")[0].detail == "blank stage=finalize kind=empty"

    @pytest.mark.asyncio
    async def test_failed_candidate_stage_falls_through(self, build, context):
        async def run(request, ctx, tools):
            if request.stage == "candidate":
                raise RuntimeError("no pool")
            return BundleResult(bundle=_bundle())

        skill = StaticSkill("market", run_fn=run, stages=("candidate", "finalize"))
        orchestrator = build(SkillRegistry([skill]), fallback_skill_id="market")

        response = await orchestrator.dispatch(
            SESSION, act("TONIGHT_SUBMIT_ORDER", text="$market tonight please"), context
        )

        assert [r.stage for r in skill.runs] == ["candidate", "finalize"]
        bundle = fold(response).get("tonight").data_model["bundle"]
        assert bundle["primary_ending"]["title"] == "Night market"

    @pytest.mark.asyncio
    async def test_capability_denied_propagates(self, build, context, sessions):
        async def sneaky(request, ctx, tools):
            await tools.places_search("bars")

        registry = SkillRegistry([StaticSkill("sneaky", run_fn=sneaky)])
        orchestrator = build(registry, fallback_skill_id="sneaky")

        with pytest.raises(CapabilityDeniedError):
            await orchestrator.dispatch(
                SESSION, act("TONIGHT_SUBMIT_ORDER", text="$sneaky find me a bar"), context
            )
        session = await sessions.get(SESSION)
        assert session.last_order_text == "$sneaky find me a bar"

    @pytest.mark.asyncio
    async def test_nav_enrichment_failure_keeps_result(self, build, context):
        tools = SpyTools(fail={"maps.link"})
        registry = SkillRegistry([StaticSkill("market", result=BundleResult(bundle=_bundle()))])
        orchestrator = build(registry, tools=tools, fallback_skill_id="market")

        response = await orchestrator.dispatch(
            SESSION, act("TONIGHT_SUBMIT_ORDER", text="$market tonight please"), context
        )

        payload = fold(response).get("tonight").data_model["bundle"]["primary_ending"]["payload"]
        assert "nav_url" not in payload
        assert tools.calls["maps.link"] >= 1

    @pytest.mark.asyncio
    async def test_patch_results_are_forwarded(self, build, context):
        result = PatchesResult(patches=[data_update("sky", {"sky": {"pressure": "Soft"}})])
        skill = StaticSkill("skywriter", result=result, allowed_surfaces=("tonight", "sky"))
        orchestrator = build(SkillRegistry([skill]), fallback_skill_id="skywriter")

        response = await orchestrator.dispatch(
            SESSION, act("TONIGHT_SUBMIT_ORDER", text="$skywriter write the sky"), context
        )

        assert surface_ids(response) == ["sky"]


class TestResultActions:
    @pytest.mark.asyncio
    async def test_switch_plan(self, orchestrator, context):
        response = await orchestrator.dispatch(SESSION, act("SWITCH_PLAN", plan="plan_b"), context)

        ui = fold(response).get("tonight").data_model["ui"]
        assert ui == {"stage": "result", "loading": False, "active_plan": "plan_b"}

    @pytest.mark.asyncio
    async def test_save_ticket_from_last_bundle(self, orchestrator, context, sessions):
        await orchestrator.dispatch(
            SESSION, act("TONIGHT_SUBMIT_ORDER", text="$tonight_composer anything is fine"), context
        )

        response = await orchestrator.dispatch(SESSION, act("SAVE_TICKET"), context)

        session = await sessions.get(SESSION)
        ticket = session.pocket_tickets[0]
        assert ticket.type == "OUTCOME"
        assert ticket.title == session.last_bundle.primary_ending.title
        assert ticket.image_ref.startswith("nf://")
        assert surface_ids(response) == ["pocket"]

    @pytest.mark.asyncio
    async def test_save_ticket_without_bundle(self, orchestrator, context):
        response = await orchestrator.dispatch(SESSION, act("SAVE_TICKET"), context)
        assert response.messages == []

    @pytest.mark.asyncio
    async def test_start_focus(self, orchestrator, context):
        response = await orchestrator.dispatch(
            SESSION, act("EXECUTE_OUTCOME", action="start_focus"), context
        )
        assert response.effects == [EnterFocus()]

    @pytest.mark.asyncio
    async def test_play_turns_radio_on(self, orchestrator, context, sessions):
        await orchestrator.bootstrap(SESSION, context)

        response = await orchestrator.dispatch(SESSION, act("EXECUTE_OUTCOME", action="PLAY"), context)

        assert response.effects == [SetChannel(channel="sky")]
        radio = fold(response).get("radio").data_model["radio"]
        assert radio["playing"] is True
        assert (await sessions.get(SESSION)).radio_playing is True

    @pytest.mark.asyncio
    async def test_navigate_uses_nav_url(self, orchestrator, context, spy_tools):
        response = await orchestrator.dispatch(
            SESSION,
            act("EXECUTE_OUTCOME", action="NAVIGATE", payload={"nav_url": "https://maps.example/x"}),
            context,
        )

        assert response.effects == [OpenExternal(url="https://maps.example/x")]
        assert spy_tools.calls["maps.link"] == 0

    @pytest.mark.asyncio
    async def test_navigate_builds_link_from_query(self, orchestrator, context, spy_tools):
        response = await orchestrator.dispatch(
            SESSION,
            act("EXECUTE_OUTCOME", action="NAVIGATE", payload={"query": "riverside loop"}),
            context,
        )

        (effect,) = response.effects
        assert isinstance(effect, OpenExternal)
        assert effect.url.startswith("https://")
        assert spy_tools.calls["maps.link"] == 1

    @pytest.mark.asyncio
    async def test_send_to_car_failure_still_opens(self, build, context):
        tools = SpyTools(fail={"maps.send_to_car"})
        orchestrator = build(tools=tools)

        response = await orchestrator.dispatch(
            SESSION,
            act(
                "EXECUTE_OUTCOME",
                action="NAVIGATE",
                payload={"nav_url": "https://maps.example/y", "send_to_car": True},
            ),
            context,
        )

        assert response.effects == [OpenExternal(url="https://maps.example/y")]
        assert tools.calls["maps.send_to_car"] == 1


class TestSideSurfaces:
    @pytest.mark.asyncio
    async def test_whisper_submit_appends(self, orchestrator, context, sessions, spy_tools):
        await orchestrator.bootstrap(SESSION, context)

        response = await orchestrator.dispatch(SESSION, act("WHISPER_SUBMIT", text="still up"), context)

        items = fold(response).get("whispers").data_model["whispers"]["items"]
        assert items[-1]["content"] == "still up"
        assert items[-1]["timestamp"] == "22:30"
        assert spy_tools.calls["storage.whispers.append"] == 1
        assert len((await sessions.get(SESSION)).whispers_items) == 1

    @pytest.mark.asyncio
    async def test_blank_whisper_ignored(self, orchestrator, context):
        response = await orchestrator.dispatch(SESSION, act("WHISPER_SUBMIT", text=""), context)
        assert response.messages == []

    @pytest.mark.asyncio
    async def test_whisper_rate_limit_propagates(self, orchestrator, context, sessions):
        for text in ("one", "two"):
            await orchestrator.dispatch(SESSION, act("WHISPER_SUBMIT", text=text), context)

        with pytest.raises(RateLimitedError):
            await orchestrator.dispatch(SESSION, act("WHISPER_SUBMIT", text="three"), context)
        assert [w.content for w in (await sessions.get(SESSION)).whispers_items] == ["one", "two"]

    @pytest.mark.asyncio
    async def test_open_whispers(self, orchestrator, context):
        response = await orchestrator.dispatch(SESSION, act("OPEN_WHISPERS"), context)
        assert response.effects == [OpenWhispers()]

    @pytest.mark.asyncio
    async def test_light_on_in_stealth_is_silent(self, orchestrator, make_context):
        response = await orchestrator.dispatch(SESSION, act("LIGHT_ON"), make_context(stealth=True))
        assert response == EngineResponse(session_id=SESSION, trace_id=response.trace_id)

    @pytest.mark.asyncio
    async def test_light_on_bypasses_budget(self, orchestrator, context):
        await orchestrator.bootstrap(SESSION, context)

        response = await orchestrator.dispatch(SESSION, act("LIGHT_ON"), context)

        sky = fold(response).get("sky").data_model["sky"]
        assert sky["pressure"] == "Quiet"

    @pytest.mark.asyncio
    async def test_stealth_sky_on_bootstrap(self, orchestrator, make_context):
        response = await orchestrator.bootstrap(SESSION, make_context(stealth=True))
        assert fold(response).get("sky").data_model["sky"]["pressure"] == "Stealth"

    @pytest.mark.asyncio
    async def test_radio_toggle(self, orchestrator, context):
        first = await orchestrator.dispatch(SESSION, act("RADIO_TOGGLE"), context)
        second = await orchestrator.dispatch(SESSION, act("RADIO_TOGGLE"), context)

        assert fold(first).get("radio").data_model["radio"]["playing"] is True
        assert fold(second).get("radio").data_model["radio"]["playing"] is False

    @pytest.mark.asyncio
    async def test_open_veil(self, orchestrator, context):
        response = await orchestrator.dispatch(SESSION, act("OPEN_VEIL"), context)

        assert response.effects == [SetChannel(channel="veil")]
        collage = fold(response).get("veil").data_model["veil"]["collage"]
        assert collage["collage_id"] == "veil_2026-01-10"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("name", "channel"), [("OPEN_FOOTPRINTS", "footprints"), ("BACK_TO_POCKET", "pocket")]
    )
    async def test_channel_switches(self, orchestrator, context, name, channel):
        response = await orchestrator.dispatch(SESSION, act(name), context)
        assert response.effects == [SetChannel(channel=channel)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("vote", "mode"), [("like", "focus"), ("meh", "stealth")])
    async def test_veil_feedback(self, orchestrator, context, vote, mode):
        response = await orchestrator.dispatch(SESSION, act("VEIL_FEEDBACK", vote=vote), context)

        (effect,) = response.effects
        assert effect.hint.ui_mode_hint == mode
        assert effect.hint.info_density == pytest.approx(0.25)

    @pytest.mark.asyncio
    async def test_save_veil_frame(self, orchestrator, context, sessions):
        await orchestrator.dispatch(SESSION, act("SAVE_VEIL_FRAME", cover_ref="nf://cover/x"), context)

        ticket = (await sessions.get(SESSION)).pocket_tickets[0]
        assert ticket.type == "FRAME"
        assert ticket.title == "Veil frame veil_2026-01-10"
        assert ticket.image_ref == "nf://cover/x"

    @pytest.mark.asyncio
    async def test_export_pocket(self, orchestrator, context, sessions):
        response = await orchestrator.dispatch(SESSION, act("EXPORT_POCKET"), context)

        assert response.effects == [SetChannel(channel="pocket")]
        tickets = fold(response).get("pocket").data_model["pocket"]["tickets"]
        assert tickets[0]["type"] == "WEEKLY"
        assert tickets[0]["title"] == "Footprints archived"


class TestDispatch:
    @pytest.mark.asyncio
    async def test_unknown_action(self, orchestrator, context):
        response = await orchestrator.dispatch(SESSION, act("DANCE"), context, trace_id="t-1")

        assert response.messages == []
        assert response.effects == []
        assert response.trace_id == "t-1"
        assert response.session_id == SESSION

    @pytest.mark.asyncio
    async def test_trace_id_generated(self, orchestrator, context):
        response = await orchestrator.dispatch(SESSION, act("DANCE"), context)
        assert len(response.trace_id) == 32

    @pytest.mark.asyncio
    async def test_audit_events_carry_trace(self, orchestrator, context, audit: AuditLog):
        await orchestrator.dispatch(
            SESSION, act("TONIGHT_SUBMIT_ORDER", text="$tonight_composer anything"), context, trace_id="t-9"
        )

        starts = audit.of_type("skill_start")
        assert starts and all(e.trace_id == "t-9" for e in starts)
        assert all(e.session_id == SESSION for e in starts)

    def test_all_actions_registered(self, orchestrator):
        assert len(orchestrator.actions) == 20
        assert "EXPORT_POCKET" in orchestrator.actions

    @pytest.mark.asyncio
    async def test_dump_is_wire_form(self, orchestrator, context):
        response = await orchestrator.dispatch(SESSION, act("OPEN_VEIL"), context)

        dumped = response.dump()
        assert list(dumped["messages"][0]) == ["dataModelUpdate"]
        assert dumped["effects"] == [{"type": "set_channel", "channel": "veil"}]

    @pytest.mark.asyncio
    async def test_composer_registry_only(self, build, context, sessions):
        registry = SkillRegistry([TonightComposer(MockContentGenerator())])
        orchestrator = build(registry)

        first = await orchestrator.dispatch(
            SESSION, act("TONIGHT_SUBMIT_ORDER", text="somewhere to sit for a while"), context
        )
        assert fold(first).get("tonight").data_model["ui"]["stage"] == "clarify"
        assert set((await sessions.get(SESSION)).clarify_choice_map.values()) == {"tonight_composer"}

        second = await orchestrator.dispatch(
            SESSION, act("TONIGHT_SELECT_CHOICE", choice="Steady · safest pick"), context
        )
        assert fold(second).get("tonight").data_model["ui"]["stage"] == "result"

    @pytest.mark.asyncio
    async def test_injected_empty_store_receives_sessions(self, spy_tools, audit, clock, context):
        store = InMemorySessionStore()
        orchestrator = build_orchestrator(
            Settings.from_toml({}), impl=spy_tools, sessions=store, audit=audit, clock=clock
        )

        await orchestrator.dispatch(SESSION, act("OPEN_VEIL"), context)

        assert await store.get(SESSION) is not None
        assert len(store) == 1
