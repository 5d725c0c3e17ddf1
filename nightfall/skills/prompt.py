"""Prompt-driven packaged skills.

A packaged skill is a written brief plus a manifest. At run time the
brief, the context snapshot, the request and any tool seeds are
assembled into one prompt for the content generator, and the generated
JSON is parsed leniently into candidates or a bundle.
"""

import json
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from nightfall.errors import UpstreamUnavailableError
from nightfall.observability.logging import get_logger
from nightfall.providers.content.base import ContentGenerator
from nightfall.skills.base import Skill, SkillContext
from nightfall.skills.models import (
    BundleResult,
    CandidatesResult,
    CuratorialBundle,
    Intent,
    Permissions,
    RateLimitSpec,
    SkillManifest,
    SkillRequest,
    SkillResult,
    SkillStage,
    UIHints,
    parse_candidates,
)
from nightfall.toolbus.bus import ToolBus
from nightfall.toolbus.models import PlaceResult, ToolName

logger = get_logger(__name__)

SEARCH_TEXT_CHARS = 2000

_OUTPUT_REQUIREMENTS = """OUTPUT REQUIREMENTS:
- Output JSON only. No markdown.
- Candidate stage: return candidate_pool (2-12 items). Each item: {id,title,tag,desc}. Keep title short.
- Finalize stage: return CuratorialBundle (primary_ending + plan_b + ambient_tokens). Checklist <=5. Risk_flags <=2.
- Plan B must be more conservative than primary when possible (nearer, later, quieter, safer)."""


class SkillPackage(BaseModel):
    """Static definition of a packaged prompt skill."""

    id: str
    title: str
    description: str
    default_prompt: str
    brief: str
    shelf_tag: str | None = None
    stages: tuple[SkillStage, ...] = ("candidate", "finalize")
    intents: tuple[Intent, ...] = ("explore", "place_anchor", "tonight_answer")
    allowed_surfaces: tuple[str, ...] = ("tonight", "discover", "pocket", "radio")
    tools: tuple[ToolName, ...] = ()
    ui_hints: UIHints = Field(default_factory=lambda: UIHints(tone_tags=["minimal"]))
    keywords: tuple[str, ...] = Field(
        default=(), description="Extra search terms, any language"
    )

    def manifest(self) -> SkillManifest:
        return SkillManifest(
            id=self.id,
            title=self.title,
            description=self.description,
            stages=self.stages,
            intents=self.intents,
            allowed_surfaces=self.allowed_surfaces,
            permissions=Permissions(tools=self.tools),
            rate_limit=RateLimitSpec(per_night=40, per_minute=12),
            shelf_tag=self.shelf_tag,
            default_prompt=self.default_prompt,
            ui_hints=self.ui_hints,
        )


def compact_text(text: str, max_chars: int) -> str:
    t = " ".join(text.split())
    return t if len(t) <= max_chars else t[: max_chars - 1] + "…"


class PromptBuilder:
    """Assemble the generator prompt for one packaged skill invocation."""

    def __init__(self, package: SkillPackage) -> None:
        self._package = package

    def build(
        self,
        request: SkillRequest,
        ctx: SkillContext,
        seeds: Sequence[PlaceResult] = (),
    ) -> str:
        pkg = self._package
        user_line = (
            (request.utterance or "").strip()
            or pkg.default_prompt.strip()
            or f"Use skill: {pkg.title}"
        )
        lines = [
            "SYSTEM ROLE: Nightfall backstage skill executor.",
            "STYLE: concise, editorial, non-performative.",
            "SAFETY: do not claim facts you cannot justify; mark uncertain details as a risk_flag.",
            "",
            f"SKILL_ID: {pkg.id}",
            "SKILL_BRIEF (follow strictly):",
            pkg.brief.strip(),
            "",
            "RUNTIME_CONTEXT:",
            ctx.context.model_dump_json(),
            "",
            f"STAGE: {request.stage}",
            f"USER_REQUEST: {json.dumps(user_line, ensure_ascii=False)}",
        ]
        if request.selection and request.selection.selected_id:
            lines.append(f"SELECTED_ID: {request.selection.selected_id}")
        elif request.selection and request.selection.choice:
            lines.append(f"CHOICE: {request.selection.choice}")
        if seeds:
            payload = [s.model_dump(mode="json", exclude_none=True) for s in seeds]
            lines.append(f"TOOL_SEEDS (may be partial/stub): {json.dumps(payload, ensure_ascii=False)}")
        lines.append(f"CONSTRAINTS: {json.dumps(request.constraints, ensure_ascii=False, default=str)}")
        lines.append("")
        lines.append(_OUTPUT_REQUIREMENTS)
        return "\n".join(lines)


async def fetch_place_seeds(
    tools: ToolBus, query: str, grid_id: str
) -> list[PlaceResult]:
    """Best-effort places lookup; an unavailable provider yields no seeds."""
    if "places.search" not in tools.allowed_tools:
        return []
    try:
        return await tools.places_search(query, grid_id=grid_id)
    except UpstreamUnavailableError as e:
        logger.warning("place_seeds_unavailable", error=str(e))
        return []


class PromptSkill(Skill):
    """Skill backed by a written brief and the content generator."""

    def __init__(self, package: SkillPackage, generator: ContentGenerator) -> None:
        self.package = package
        self.manifest = package.manifest()
        self._generator = generator
        self._prompts = PromptBuilder(package)

    @property
    def search_text(self) -> str:
        pkg = self.package
        parts = [pkg.title, pkg.description, pkg.default_prompt, pkg.brief, *pkg.keywords]
        return compact_text("\n\n".join(p for p in parts if p), SEARCH_TEXT_CHARS)

    async def run(self, request: SkillRequest, ctx: SkillContext, tools: ToolBus) -> SkillResult:
        query = request.utterance or self.package.default_prompt or self.package.title
        seeds = await fetch_place_seeds(tools, query, ctx.context.location.grid_id)
        prompt = self._prompts.build(request, ctx, seeds)

        if request.stage == "candidate":
            variant = int(request.constraints.get("variant", 0) or 0)
            data = await self._generator.generate_candidates(prompt, seeds=seeds, variant=variant)
            return CandidatesResult(
                candidates=parse_candidates(data.get("candidate_pool")),
                ui=_parse_ui(data.get("ui")),
                debug={"skill": self.id, "stage": "candidate"},
            )

        selected = request.selection.selected_id if request.selection else None
        data = await self._generator.generate_bundle(prompt, seeds=seeds, selected_id=selected)
        bundle = CuratorialBundle.from_generated(data)
        return BundleResult(
            bundle=bundle,
            ui=bundle.ui_hints,
            debug={"skill": self.id, "stage": "finalize"},
        )


def _parse_ui(data: Any) -> UIHints | None:
    if not isinstance(data, dict):
        return None
    try:
        return UIHints.model_validate(data)
    except ValidationError:
        return None
