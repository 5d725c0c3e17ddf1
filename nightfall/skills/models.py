"""Skill contract models: manifests, requests, results and bundles.

Generated content is parsed leniently: malformed fields become empty
values or None so the policy chain can repair them instead of failing
the request.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from nightfall.protocol.messages import Message
from nightfall.toolbus.models import ToolName

SkillStage = Literal["candidate", "finalize", "system"]

Intent = Literal[
    "tonight_answer",
    "place_anchor",
    "explore",
    "quiet_copresence",
    "focus",
    "radio",
    "whispers",
    "footprint",
    "plan_b",
]

DataScope = Literal["context.read", "pocket.write", "whispers.write"]

EndingAction = Literal["NAVIGATE", "START_ROUTE", "PLAY", "START_FOCUS"]

ENDING_ACTIONS: frozenset[str] = frozenset({"NAVIGATE", "START_ROUTE", "PLAY", "START_FOCUS"})
NAV_ACTIONS: frozenset[str] = frozenset({"NAVIGATE", "START_ROUTE"})


class Permissions(BaseModel):
    """Strict allowlist of tools and data scopes."""

    model_config = ConfigDict(frozen=True)

    tools: tuple[ToolName, ...] = ()
    data_scopes: tuple[DataScope, ...] = ("context.read",)


class RateLimitSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    per_night: int | None = Field(default=None, ge=0)
    per_minute: int | None = Field(default=None, ge=0)


class UIHints(BaseModel):
    """Density and tone hints forwarded to the host as a style_hint effect."""

    info_density: float | None = Field(default=None, ge=0.0, le=1.0)
    ui_mode_hint: str | None = None
    tone_tags: list[str] = Field(default_factory=list)


class SkillManifest(BaseModel):
    """Static descriptor of a skill."""

    model_config = ConfigDict(frozen=True)

    id: str
    version: str = "0.1.0"
    title: str
    description: str = ""
    stages: tuple[SkillStage, ...]
    intents: tuple[Intent, ...]
    allowed_surfaces: tuple[str, ...]
    permissions: Permissions = Field(default_factory=Permissions)
    rate_limit: RateLimitSpec | None = None
    shelf_tag: str | None = None
    default_prompt: str | None = None
    ui_hints: UIHints | None = None

    def supports(self, stage: SkillStage) -> bool:
        return stage in self.stages


class Selection(BaseModel):
    selected_id: str | None = None
    choice: str | None = None


class SkillRequest(BaseModel):
    intent: Intent
    stage: SkillStage
    utterance: str | None = None
    selection: Selection | None = None
    constraints: dict[str, Any] = Field(default_factory=dict)

    def summary(self) -> str:
        parts = [f"stage={self.stage}"]
        if self.utterance:
            parts.append(f"utterance={self.utterance[:60]}")
        if self.selection and self.selection.selected_id:
            parts.append(f"selected={self.selection.selected_id}")
        if self.selection and self.selection.choice:
            parts.append(f"choice={self.selection.choice}")
        return " ".join(parts)


class CandidateItem(BaseModel):
    """One option on the candidate shelf."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    title: str | None = None
    tag: str | None = None
    desc: str | None = None
    image_ref: str | None = None

    @field_validator("id", "title", "tag", "desc", "image_ref", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        return str(v)


def _lenient_str(v: Any) -> str:
    if v is None:
        return ""
    return v if isinstance(v, str) else str(v)


def _lenient_str_list(v: Any) -> list[str]:
    if not isinstance(v, list | tuple):
        return []
    return [_lenient_str(i) for i in v if i is not None]


class Ending(BaseModel):
    """One executable outcome (primary or Plan B)."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    title: str = ""
    reason: str = ""
    checklist: list[str] = Field(default_factory=list)
    risk_flags: list[str] = Field(default_factory=list)
    expires_at: str = ""
    action: EndingAction | None = None
    action_label: str = ""
    payload: dict[str, Any] = Field(default_factory=dict)
    place_id: str | None = None

    @field_validator("id", "title", "reason", "expires_at", "action_label", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _lenient_str(v)

    @field_validator("checklist", "risk_flags", mode="before")
    @classmethod
    def coerce_lists(cls, v: Any) -> list[str]:
        return _lenient_str_list(v)

    @field_validator("action", mode="before")
    @classmethod
    def normalize_action(cls, v: Any) -> str | None:
        action = _lenient_str(v).strip().upper()
        return action if action in ENDING_ACTIONS else None

    @field_validator("payload", mode="before")
    @classmethod
    def coerce_payload(cls, v: Any) -> dict[str, Any]:
        return v if isinstance(v, dict) else {}

    @field_validator("place_id", mode="before")
    @classmethod
    def coerce_place_id(cls, v: Any) -> str | None:
        return None if v in (None, "") else _lenient_str(v)


class MediaPack(BaseModel):
    """Image references attached to a finalized bundle."""

    model_config = ConfigDict(extra="ignore")

    cover_ref: str | None = None
    gallery_refs: list[str] = Field(default_factory=list)
    fragment_ref: str | None = None
    stamp_ref: str | None = None
    texture_ref: str | None = None
    tone_tags: list[str] = Field(default_factory=list)
    accent_hint: str | None = None


class CuratorialBundle(BaseModel):
    """Primary ending plus a more conservative Plan B."""

    model_config = ConfigDict(extra="ignore")

    primary_ending: Ending | None = None
    plan_b: Ending | None = None
    ambient_tokens: list[str] = Field(default_factory=list)
    media_pack: MediaPack | None = None
    candidate_pool: list[CandidateItem] | None = None
    ui_hints: UIHints | None = None

    @field_validator("ambient_tokens", mode="before")
    @classmethod
    def coerce_tokens(cls, v: Any) -> list[str]:
        return _lenient_str_list(v)

    @classmethod
    def from_generated(cls, data: Any) -> "CuratorialBundle":
        """Parse generator output, dropping any part that does not validate."""
        if isinstance(data, CuratorialBundle):
            return data
        if not isinstance(data, dict):
            return cls()
        parsed: dict[str, Any] = {}
        for key in ("primary_ending", "plan_b", "media_pack", "ui_hints"):
            value = data.get(key)
            if isinstance(value, dict):
                parsed[key] = value
        parsed["ambient_tokens"] = data.get("ambient_tokens")
        pool = data.get("candidate_pool")
        if isinstance(pool, list):
            parsed["candidate_pool"] = [c for c in pool if isinstance(c, dict)]
        try:
            return cls.model_validate(parsed)
        except ValidationError:
            # Keep the endings when only the decorative parts are broken
            parsed.pop("media_pack", None)
            parsed.pop("ui_hints", None)
            return cls.model_validate(parsed)


def parse_candidates(data: Any) -> list[CandidateItem]:
    """Parse generator output into candidate items, skipping non-objects."""
    if not isinstance(data, list):
        return []
    return [CandidateItem.model_validate(c) for c in data if isinstance(c, dict)]


class _ResultBase(BaseModel):
    ui: UIHints | None = None
    debug: dict[str, Any] = Field(default_factory=dict)


class CandidatesResult(_ResultBase):
    kind: Literal["candidates"] = "candidates"
    candidates: list[CandidateItem] = Field(default_factory=list)


class BundleResult(_ResultBase):
    kind: Literal["bundle"] = "bundle"
    bundle: CuratorialBundle


class PatchesResult(_ResultBase):
    kind: Literal["patches"] = "patches"
    patches: list[Message] = Field(default_factory=list)


class EmptyResult(_ResultBase):
    kind: Literal["empty"] = "empty"


SkillResult = Annotated[
    CandidatesResult | BundleResult | PatchesResult | EmptyResult,
    Field(discriminator="kind"),
]


def summarize_result(result: SkillResult) -> str:
    match result:
        case CandidatesResult(candidates=items):
            return f"candidates={len(items)}"
        case BundleResult(bundle=bundle):
            title = bundle.primary_ending.title if bundle.primary_ending else ""
            return f"bundle primary={title[:40]}"
        case PatchesResult(patches=patches):
            return f"patches={len(patches)}"
        case EmptyResult():
            return "empty"
