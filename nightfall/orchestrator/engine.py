"""Orchestrator: turns user actions into protocol messages and host effects.

The tonight flow walks ``order -> clarify? -> candidate? -> result`` and
can be reset to ``order`` at any point. Side surfaces (discover, sky,
pocket, whispers, radio, veil, footprints) are updated by budget-gated
data patches.

Capability, configuration and rate-limit errors propagate to the caller.
Any other skill failure is treated as "no result": the candidate stage
falls through to finalize, and a failed finalize renders the canned
fallback bundle.
"""

import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from nightfall.audit.log import AuditLog, audit_context
from nightfall.audit.models import PolicyViolationEvent
from nightfall.context import ContextSignals
from nightfall.errors import TERMINAL_ERRORS, UpstreamUnavailableError
from nightfall.observability.logging import get_logger
from nightfall.orchestrator.effects import (
    EngineResponse,
    EnterFocus,
    HostEffect,
    OpenExternal,
    OpenWhispers,
    SetChannel,
    StyleHint,
    UserAction,
)
from nightfall.orchestrator.media import MediaResolver
from nightfall.orchestrator.patches import SurfacePatcher
from nightfall.policy.channel_budget import ChannelBudget
from nightfall.policy.circle import CircleSignals
from nightfall.policy.linter import fallback_bundle
from nightfall.protocol import programs
from nightfall.protocol.messages import Message, data_update
from nightfall.router.models import ClarifyDecision, RouteDecision
from nightfall.router.router import SkillRouter
from nightfall.runtime.skill_runtime import SkillRuntime
from nightfall.session.models import PocketTicket, Session, ShelfItem, WhisperItem
from nightfall.session.store import SessionStore
from nightfall.skills.models import (
    NAV_ACTIONS,
    BundleResult,
    CandidatesResult,
    CuratorialBundle,
    Ending,
    PatchesResult,
    Selection,
    SkillRequest,
    SkillResult,
    UIHints,
)
from nightfall.toolbus.bus import ToolBus
from nightfall.toolbus.models import SYSTEM_TOOLS

logger = get_logger(__name__)

WHISPERS_SKILL_ID = "whispers_note"
DEFAULT_NAV_QUERY = "quiet place"

Handler = Callable[[UserAction, ContextSignals, Session], Awaitable[EngineResponse]]


def new_trace_id() -> str:
    return uuid.uuid4().hex


class Orchestrator:
    """Session state machine over the router, skill runtime and tool bus."""

    def __init__(
        self,
        runtime: SkillRuntime,
        router: SkillRouter,
        sessions: SessionStore,
        *,
        tools: ToolBus,
        channel_budget: ChannelBudget,
        circle: CircleSignals,
        media: MediaResolver | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            runtime: Runs skills with rate limits and policy applied
            router: Resolves utterances to skills or clarify questions
            sessions: Session storage, read and saved once per action
            tools: Root tool bus; host-level enrichment uses a copy scoped
                to the system tools
            channel_budget: Per-surface push throttle for side-surface patches
            circle: Co-presence signal feeding the sky surface
            media: Image reference resolver for candidates and bundles
        """
        self._runtime = runtime
        self._router = router
        self._sessions = sessions
        self._tools = tools
        self._budget = channel_budget
        self._circle = circle
        self._media = media or MediaResolver()
        self._patches = SurfacePatcher(channel_budget, circle)
        self._handlers: dict[str, Handler] = {
            "TONIGHT_SUBMIT_ORDER": self._submit_order,
            "TONIGHT_SELECT_CHOICE": self._select_choice,
            "TONIGHT_SELECT_CANDIDATE": self._select_candidate,
            "TONIGHT_REFRESH_CANDIDATES": self._refresh_candidates,
            "TONIGHT_RESET": self._reset,
            "TONIGHT_BACK_TO_ORDER": self._reset,
            "DISCOVER_SELECT_SKILL": self._select_skill,
            "SWITCH_PLAN": self._switch_plan,
            "SAVE_TICKET": self._save_ticket,
            "EXECUTE_OUTCOME": self._execute_outcome,
            "WHISPER_SUBMIT": self._whisper_submit,
            "OPEN_WHISPERS": self._open_whispers,
            "LIGHT_ON": self._light_on,
            "RADIO_TOGGLE": self._radio_toggle,
            "OPEN_VEIL": self._open_veil,
            "OPEN_FOOTPRINTS": self._open_footprints,
            "BACK_TO_POCKET": self._back_to_pocket,
            "VEIL_FEEDBACK": self._veil_feedback,
            "SAVE_VEIL_FRAME": self._save_veil_frame,
            "EXPORT_POCKET": self._export_pocket,
        }

    @property
    def audit(self) -> AuditLog:
        return self._runtime.audit

    @property
    def actions(self) -> list[str]:
        return list(self._handlers)

    @property
    def runtime(self) -> SkillRuntime:
        return self._runtime

    async def aclose(self) -> None:
        """Close tool backends and durable audit sinks."""
        await self._tools.aclose()
        self.audit.close()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def bootstrap(
        self, session_id: str, context: ContextSignals, *, trace_id: str | None = None
    ) -> EngineResponse:
        """Emit the initial program for every surface."""
        trace_id = trace_id or new_trace_id()
        with audit_context(trace_id=trace_id, session_id=session_id):
            session = await self._sessions.get_or_create(session_id)
            shelf = self._build_shelf()
            session.discover_skills = shelf
            session.discover_hero = shelf[0] if shelf else None

            messages: list[Message] = [
                *programs.program_tonight_order(context),
                *programs.program_discover(context, shelf),
                *programs.program_sky(context),
                *programs.program_pocket(context),
                *programs.program_whispers(context),
                *programs.program_radio(context),
                *programs.program_veil(context),
                *programs.program_footprints(context),
                *self._patches.sky(session, context),
                *self._patches.pocket(session),
                *self._patches.whispers(session),
                *self._patches.radio(session),
                *self._patches.veil(session, context),
            ]
            await self._sessions.save(session)
            logger.info("session_bootstrapped", skills=len(shelf), messages=len(messages))
        return EngineResponse(messages=messages, session_id=session_id, trace_id=trace_id)

    async def dispatch(
        self,
        session_id: str,
        action: UserAction,
        context: ContextSignals,
        *,
        trace_id: str | None = None,
    ) -> EngineResponse:
        """Handle one user action; unknown actions yield an empty response."""
        trace_id = trace_id or new_trace_id()
        with audit_context(trace_id=trace_id, session_id=session_id):
            session = await self._sessions.get_or_create(session_id)
            handler = self._handlers.get(action.name)
            try:
                if handler is None:
                    logger.info("unknown_action", action=action.name)
                    response = EngineResponse()
                else:
                    response = await handler(action, context, session)
            finally:
                await self._sessions.save(session)
            logger.debug(
                "action_handled",
                action=action.name,
                messages=len(response.messages),
                effects=len(response.effects),
            )
        return response.model_copy(update={"session_id": session_id, "trace_id": trace_id})

    # ------------------------------------------------------------------
    # Tonight flow
    # ------------------------------------------------------------------

    async def _submit_order(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        text = action.text("text")
        if not text:
            return EngineResponse()
        session.last_order_text = text

        decision = self._router.route(text, context)
        match decision:
            case ClarifyDecision(choices=choices, choice_map=choice_map):
                session.clarify_choice_map = dict(choice_map)
                session.candidate_variant = 0
                return EngineResponse(
                    messages=programs.program_tonight_clarify(context, text, choices)
                )
            case RouteDecision(skill_id=skill_id):
                session.active_skill_id = skill_id
                session.candidate_variant = 0
                return await self.run_candidate_or_finalize(skill_id, text, context, session)

    async def _select_choice(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        choice = action.text("choice")
        utterance = session.last_order_text
        skill_id = (session.clarify_choice_map or {}).get(choice)
        if skill_id is None:
            decision = self._router.route(f"{utterance} {choice}".strip(), context)
            if isinstance(decision, RouteDecision):
                skill_id = decision.skill_id
            else:
                skill_id = self._router.fallback_id()
        if not skill_id:
            return EngineResponse()

        session.clarify_choice_map = None
        session.active_skill_id = skill_id
        return await self.run_candidate_or_finalize(
            skill_id,
            utterance,
            context,
            session,
            selection=Selection(choice=choice),
            constraints={"clarify_choice": choice},
        )

    async def _select_candidate(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        selected_id = action.text("id")
        if not session.active_skill_id or not selected_id:
            return EngineResponse()
        return await self._finalize(
            session.active_skill_id,
            session.last_order_text,
            context,
            session,
            selection=Selection(selected_id=selected_id),
        )

    async def _refresh_candidates(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        if not session.active_skill_id:
            return EngineResponse()
        session.candidate_variant += 1
        return await self.run_candidate_or_finalize(
            session.active_skill_id,
            session.last_order_text,
            context,
            session,
            constraints={"variant": session.candidate_variant},
            force_candidate=True,
        )

    async def _reset(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        session.reset_tonight()
        return EngineResponse(messages=programs.program_tonight_order(context))

    async def _select_skill(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        skill_id = action.text("id")
        skill = self._runtime.registry.get(skill_id) if skill_id else None
        if skill is None:
            return EngineResponse()

        item = action.payload.get("item")
        prompt = str(item.get("prompt") or "").strip() if isinstance(item, dict) else ""
        utterance = prompt or skill.manifest.default_prompt or f"Use ${skill_id}"

        session.reset_tonight()
        session.active_skill_id = skill_id
        session.last_order_text = utterance
        response = await self.run_candidate_or_finalize(skill_id, utterance, context, session)
        response.effects.insert(0, SetChannel(channel="tonight"))
        return response

    async def run_candidate_or_finalize(
        self,
        skill_id: str,
        utterance: str,
        context: ContextSignals,
        session: Session,
        *,
        selection: Selection | None = None,
        constraints: dict[str, Any] | None = None,
        force_candidate: bool = False,
    ) -> EngineResponse:
        """Show candidates when the skill has a candidate stage, else finalize."""
        manifest = self._runtime.registry.require(skill_id).manifest
        constraints = dict(constraints or {})

        wants_candidates = force_candidate or selection is None or not selection.selected_id
        if manifest.supports("candidate") and wants_candidates:
            request = SkillRequest(
                intent="explore",
                stage="candidate",
                utterance=utterance,
                selection=selection,
                constraints=constraints,
            )
            result = await self._run_or_none(skill_id, request, context, session)
            if isinstance(result, CandidatesResult) and result.candidates:
                candidates = self._media.attach_candidate_images(
                    skill_id, result.candidates, session.last_places
                )
                session.last_candidates = candidates
                return EngineResponse(
                    messages=programs.program_tonight_candidates(
                        context,
                        skill_title=manifest.title,
                        order_text=session.last_order_text or utterance,
                        candidates=candidates,
                    ),
                    effects=self._style_effects(result),
                )

        return await self._finalize(
            skill_id, utterance, context, session, selection=selection, constraints=constraints
        )

    async def _finalize(
        self,
        skill_id: str,
        utterance: str,
        context: ContextSignals,
        session: Session,
        *,
        selection: Selection | None = None,
        constraints: dict[str, Any] | None = None,
    ) -> EngineResponse:
        request = SkillRequest(
            intent="explore",
            stage="finalize",
            utterance=utterance,
            selection=selection,
            constraints=dict(constraints or {}),
        )
        result = await self._run_or_none(skill_id, request, context, session)
        effects = self._style_effects(result)

        match result:
            case PatchesResult(patches=patches):
                return EngineResponse(messages=list(patches), effects=effects)
            case BundleResult(bundle=bundle):
                pass
            case None:
                # Failure already audited by _run_or_none
                bundle = fallback_bundle(context)
            case _:
                self.audit.push(
                    PolicyViolationEvent(
                        code="skill_no_bundle",
                        detail=f"{skill_id} stage=finalize kind={result.kind}",
                    )
                )
                bundle = fallback_bundle(context)

        bundle = self._media.ensure_media_pack(
            bundle, skill_id, session.last_places, session.last_candidates
        )
        bundle = await self._enrich_nav(bundle, context, session)
        session.last_bundle = bundle

        messages = [
            *programs.program_tonight_result(context, bundle),
            *self._patches.radio(session),
            *self._patches.veil(session, context),
            *self._patches.discover_gallery(session),
        ]
        return EngineResponse(messages=messages, effects=effects)

    async def _run_or_none(
        self,
        skill_id: str,
        request: SkillRequest,
        context: ContextSignals,
        session: Session,
    ) -> SkillResult | None:
        try:
            return await self._runtime.run(skill_id, request, context, session)
        except TERMINAL_ERRORS:
            raise
        except Exception as e:
            self.audit.push(
                PolicyViolationEvent(
                    code="skill_failed",
                    detail=f"{skill_id} stage={request.stage} error={type(e).__name__}",
                )
            )
            logger.warning(
                "skill_no_result",
                skill_id=skill_id,
                stage=request.stage,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    @staticmethod
    def _style_effects(result: SkillResult | None) -> list[HostEffect]:
        if result is None or result.ui is None:
            return []
        return [StyleHint(hint=result.ui)]

    def _system_bus(self, session: Session) -> ToolBus:
        return self._tools.scoped(SYSTEM_TOOLS, session)

    async def _enrich_nav(
        self, bundle: CuratorialBundle, context: ContextSignals, session: Session
    ) -> CuratorialBundle:
        bus = self._system_bus(session)
        updates: dict[str, Ending] = {}
        for field in ("primary_ending", "plan_b"):
            ending: Ending | None = getattr(bundle, field)
            if ending is None or ending.action not in NAV_ACTIONS:
                continue
            payload = dict(ending.payload)
            query = str(payload.get("query") or ending.title or DEFAULT_NAV_QUERY)
            try:
                link = await bus.maps_link(query)
                glance = await bus.maps_arrival_glance(
                    place_title=ending.title or None,
                    query=query,
                    transport_mode=context.mobility.transport_mode,
                )
            except UpstreamUnavailableError as e:
                logger.warning("nav_enrich_failed", field=field, error=str(e))
                continue
            payload["nav_url"] = link.url
            payload["arrival_glance_lines"] = list(glance.lines)
            updates[field] = ending.model_copy(update={"payload": payload})
        return bundle.model_copy(update=updates) if updates else bundle

    # ------------------------------------------------------------------
    # Result actions
    # ------------------------------------------------------------------

    async def _switch_plan(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        plan = "plan_b" if action.text("plan") == "plan_b" else "primary"
        return EngineResponse(
            messages=[data_update(programs.TONIGHT, {"ui": programs.tonight_ui("result", plan)})]
        )

    async def _save_ticket(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        raw = action.payload.get("bundle")
        bundle = CuratorialBundle.from_generated(raw) if isinstance(raw, dict) else session.last_bundle
        title = bundle.primary_ending.title if bundle and bundle.primary_ending else ""
        if not title:
            return EngineResponse()

        pack = bundle.media_pack
        image_ref = (pack.fragment_ref or pack.cover_ref or "") if pack else ""
        self._prepend_ticket(session, PocketTicket(type="OUTCOME", title=title, image_ref=image_ref))
        return EngineResponse(messages=self._patches.pocket(session))

    async def _execute_outcome(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        kind = action.text("action").upper()
        if kind == "START_FOCUS":
            return EngineResponse(effects=[EnterFocus()])
        if kind == "PLAY":
            session.radio_playing = True
            session.radio_narrative = "On air…"
            ChannelBudget.bypass(session, programs.RADIO)
            return EngineResponse(
                messages=self._patches.radio(session),
                effects=[SetChannel(channel="sky")],
            )

        payload = action.payload.get("payload")
        payload = payload if isinstance(payload, dict) else {}
        bus = self._system_bus(session)
        url = str(payload.get("nav_url") or "")
        if not url:
            query = (
                str(payload.get("query") or "")
                or action.text("title")
                or action.text("label")
                or DEFAULT_NAV_QUERY
            )
            url = (await bus.maps_link(query)).url

        if payload.get("send_to_car"):
            try:
                await bus.maps_send_to_car(url)
            except UpstreamUnavailableError as e:
                logger.warning("send_to_car_failed", error=str(e))
        return EngineResponse(effects=[OpenExternal(url=url)])

    # ------------------------------------------------------------------
    # Side surfaces
    # ------------------------------------------------------------------

    async def _whisper_submit(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        content = action.text("text")
        if not content:
            return EngineResponse()
        request = SkillRequest(intent="whispers", stage="system", utterance=content)
        await self._run_or_none(WHISPERS_SKILL_ID, request, context, session)

        session.add_whisper(
            WhisperItem(timestamp=context.time.now_ts.strftime("%H:%M"), content=content)
        )
        ChannelBudget.bypass(session, programs.WHISPERS)
        return EngineResponse(messages=self._patches.whispers(session))

    async def _open_whispers(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        return EngineResponse(effects=[OpenWhispers()])

    async def _light_on(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        if context.is_stealth:
            return EngineResponse()
        self._circle.cleanup(session)
        self._circle.pulse(session, context.location.grid_id, context.user_state.mode)
        ChannelBudget.bypass(session, programs.SKY)
        return EngineResponse(messages=self._patches.sky(session, context))

    async def _radio_toggle(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        session.radio_playing = not session.radio_playing
        ChannelBudget.bypass(session, programs.RADIO)
        return EngineResponse(messages=self._patches.radio(session))

    async def _open_veil(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        return EngineResponse(
            messages=self._patches.veil(session, context),
            effects=[SetChannel(channel="veil")],
        )

    async def _open_footprints(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        return EngineResponse(effects=[SetChannel(channel="footprints")])

    async def _back_to_pocket(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        return EngineResponse(effects=[SetChannel(channel="pocket")])

    async def _veil_feedback(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        mode = "focus" if action.text("vote") == "like" else "stealth"
        return EngineResponse(
            effects=[StyleHint(hint=UIHints(ui_mode_hint=mode, info_density=0.25))]
        )

    async def _save_veil_frame(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        collage_id = action.text("collage_id") or f"veil_{context.time.now_ts.date().isoformat()}"
        image_ref = action.text("cover_ref")
        self._prepend_ticket(
            session, PocketTicket(type="FRAME", title=f"Veil frame {collage_id}", image_ref=image_ref)
        )
        return EngineResponse(messages=self._patches.pocket(session))

    async def _export_pocket(
        self, action: UserAction, context: ContextSignals, session: Session
    ) -> EngineResponse:
        self._prepend_ticket(
            session, PocketTicket(type="WEEKLY", date="This week", title="Footprints archived")
        )
        return EngineResponse(
            messages=self._patches.pocket(session),
            effects=[SetChannel(channel="pocket")],
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _prepend_ticket(session: Session, ticket: PocketTicket) -> None:
        session.add_ticket(ticket)
        ChannelBudget.bypass(session, programs.POCKET)

    def _build_shelf(self) -> list[ShelfItem]:
        shelf = []
        for skill in self._runtime.registry.list_skills():
            m = skill.manifest
            if set(m.stages) == {"system"}:
                continue
            mode_hint = m.ui_hints.ui_mode_hint if m.ui_hints else None
            tag = m.shelf_tag or (mode_hint.upper() if mode_hint else "SKILL")
            shelf.append(
                ShelfItem(
                    id=m.id,
                    tag=tag,
                    title=m.title,
                    desc=m.description,
                    prompt=m.default_prompt or "",
                    image_ref=f"nf://cover/{m.id}",
                )
            )
        return shelf
