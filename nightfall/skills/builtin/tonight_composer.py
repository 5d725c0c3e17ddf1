"""Default composer: one executable ending plus one Plan B."""

from nightfall.context import ContextSignals
from nightfall.providers.content.base import ContentGenerator
from nightfall.skills.base import Skill, SkillContext
from nightfall.skills.models import (
    BundleResult,
    CuratorialBundle,
    Permissions,
    RateLimitSpec,
    SkillManifest,
    SkillRequest,
    SkillResult,
    UIHints,
)
from nightfall.skills.prompt import fetch_place_seeds
from nightfall.toolbus.bus import ToolBus

MANIFEST = SkillManifest(
    id="tonight_composer",
    version="0.2.0",
    title="Tonight Composer",
    description="Compresses a user request into one executable ending + one Plan B.",
    stages=("finalize",),
    intents=("tonight_answer", "place_anchor", "explore", "plan_b"),
    allowed_surfaces=("tonight", "pocket"),
    permissions=Permissions(tools=("maps.link", "places.search")),
    rate_limit=RateLimitSpec(per_night=40, per_minute=12),
    shelf_tag="TONIGHT",
    default_prompt="Somewhere quiet to end the night",
    ui_hints=UIHints(ui_mode_hint="explore", tone_tags=["warm", "minimal"]),
)


def ui_hints_for(context: ContextSignals) -> UIHints:
    """Lower density while driving; tone follows the user's mode."""
    if context.is_driving:
        mode = "drive_safe"
    elif context.user_state.energy_band == "low":
        mode = "low_battery"
    else:
        mode = "explore"
    return UIHints(
        info_density=0.15 if context.is_driving else 0.35,
        ui_mode_hint=mode,
        tone_tags=["warm"] if context.user_state.mode == "recovery" else ["minimal"],
    )


class TonightComposer(Skill):
    manifest = MANIFEST

    def __init__(self, generator: ContentGenerator) -> None:
        self._generator = generator

    @property
    def search_text(self) -> str:
        return super().search_text + " 今晚结局 告诉我你想要什么，我帮你找到今晚的落脚点 tonight ending night"

    async def run(self, request: SkillRequest, ctx: SkillContext, tools: ToolBus) -> SkillResult:
        prompt = (request.utterance or "").strip()
        if request.selection and request.selection.choice:
            prompt = f"{prompt} Preference: {request.selection.choice}".strip()

        seeds = await fetch_place_seeds(
            tools, prompt or "quiet place", ctx.context.location.grid_id
        )
        selected = request.selection.selected_id if request.selection else None
        data = await self._generator.generate_bundle(prompt, seeds=seeds, selected_id=selected)
        return BundleResult(
            bundle=CuratorialBundle.from_generated(data),
            ui=ui_hints_for(ctx.context),
        )
