"""System skill that appends an anonymous note to the whispers wall."""

from nightfall.skills.base import Skill, SkillContext
from nightfall.skills.models import (
    EmptyResult,
    Permissions,
    RateLimitSpec,
    SkillManifest,
    SkillRequest,
    SkillResult,
)
from nightfall.toolbus.bus import ToolBus

MANIFEST = SkillManifest(
    id="whispers_note",
    title="Whispers Note",
    description="Append a short anonymous note into the hallway wall.",
    stages=("system",),
    intents=("whispers",),
    allowed_surfaces=("whispers",),
    permissions=Permissions(tools=("storage.whispers.append",), data_scopes=("whispers.write",)),
    rate_limit=RateLimitSpec(per_night=8, per_minute=2),
)


class WhispersNote(Skill):
    manifest = MANIFEST

    async def run(self, request: SkillRequest, ctx: SkillContext, tools: ToolBus) -> SkillResult:
        text = (request.utterance or "").strip()
        if not text:
            return EmptyResult()

        now = ctx.context.time.now_ts
        note = {
            "symbol": "◌",
            "timestamp": now.strftime("%H:%M"),
            "content": text,
            "grid": ctx.context.location.grid_id,
        }
        await tools.whispers_append(note)
        return EmptyResult(debug={"appended": True})
