"""Surface programs: static component structure plus initial data.

Each program fully (re)defines one surface: surfaceUpdate, then
dataModelUpdate, then beginRendering. Incremental changes are sent as
plain ``data_update`` patches by the orchestrator.
"""

import math
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel

from nightfall.context import ContextSignals
from nightfall.protocol.messages import (
    Message,
    begin_rendering,
    component,
    data_update,
    surface_update,
)

TONIGHT = "tonight"
DISCOVER = "discover"
SKY = "sky"
POCKET = "pocket"
WHISPERS = "whispers"
RADIO = "radio"
VEIL = "veil"
FOOTPRINTS = "footprints"

ALL_SURFACES = (TONIGHT, DISCOVER, SKY, POCKET, WHISPERS, RADIO, VEIL, FOOTPRINTS)

WHISPER_SYMBOLS = ["✶", "◌", "⟡", "◈", "◎", "▽", "◆"]
DEFAULT_CLARIFY_CHOICES = ["Quiet and alone", "Light company", "Heads-down focus"]


def _text(value: str, usage: str) -> dict[str, Any]:
    return {"text": {"literalString": value}, "usageHint": usage}


def _children(*ids: str) -> dict[str, Any]:
    return {"explicitList": list(ids)}


def _plain(items: Sequence[Any]) -> list[Any]:
    return [i.model_dump(mode="json", exclude_none=True) if isinstance(i, BaseModel) else i for i in items]


def tonight_ui(stage: str, active_plan: str = "primary", loading: bool = False) -> dict[str, Any]:
    return {"stage": stage, "loading": loading, "active_plan": active_plan}


def program_tonight_order(context: ContextSignals) -> list[Message]:
    return [
        surface_update(
            TONIGHT,
            [
                component("root", "Box", children=_children("titleBlock", "orderCard")),
                component("titleBlock", "Box", children=_children("title", "subtitle")),
                component("title", "Text", **_text("Tonight's ending", "h1")),
                component("subtitle", "Text", **_text("Tell me what you want", "subtitle")),
                component("orderCard", "Card", variant="glass", children=_children("stepHint", "prompt")),
                component("stepHint", "Text", **_text("Step 1: describe what you need", "label")),
                component(
                    "prompt",
                    "PromptBar",
                    placeholder="e.g. somewhere quiet to work...",
                    submitAction={"name": "TONIGHT_SUBMIT_ORDER"},
                ),
            ],
        ),
        data_update(
            TONIGHT,
            {
                "ui": tonight_ui("order"),
                "tonight": {"order_text": ""},
                "context": context,
            },
        ),
        begin_rendering(TONIGHT),
    ]


def program_tonight_clarify(
    context: ContextSignals, order_text: str, choices: Sequence[str] | None = None
) -> list[Message]:
    final_choices = list(choices) if choices else list(DEFAULT_CLARIFY_CHOICES)
    return [
        surface_update(
            TONIGHT,
            [
                component("root", "Box", children=_children("clarifyCard")),
                component(
                    "clarifyCard",
                    "Card",
                    variant="glass",
                    children=_children("clarifyBadge", "clarifyTitle", "stepHint", "choiceList", "backBtn"),
                ),
                component("clarifyBadge", "Text", **_text("Needs a nudge", "label")),
                component("clarifyTitle", "Text", **_text("Which feeling fits tonight?", "h2")),
                component("stepHint", "Text", **_text("Step 2: pick a direction", "label")),
                component(
                    "choiceList",
                    "ChoiceList",
                    itemsPath="/tonight/choices",
                    chooseActionName="TONIGHT_SELECT_CHOICE",
                    loadingPath="/ui/loading",
                ),
                component(
                    "backBtn",
                    "Button",
                    label={"literalString": "← Describe again"},
                    variant="ghost",
                    action={"name": "TONIGHT_BACK_TO_ORDER"},
                ),
            ],
        ),
        data_update(
            TONIGHT,
            {
                "ui": tonight_ui("clarify"),
                "tonight": {"order_text": order_text, "choices": final_choices},
                "context": context,
            },
        ),
        begin_rendering(TONIGHT),
    ]


def program_tonight_candidates(
    context: ContextSignals,
    *,
    skill_title: str,
    order_text: str,
    candidates: Sequence[Any],
) -> list[Message]:
    subtitle = f'"{order_text}"' if order_text else "Based on what you asked"
    return [
        surface_update(
            TONIGHT,
            [
                component("root", "Box", children=_children("head", "stepHint", "shelf", "actions")),
                component("head", "Box", children=_children("title", "subtitle")),
                component("title", "Text", **_text(skill_title or "Options for you", "h2")),
                component("subtitle", "Text", **_text(subtitle, "subtitle")),
                component("stepHint", "Text", **_text("Step 3: pick one that draws you", "label")),
                component(
                    "shelf",
                    "CandidateShelf",
                    itemsPath="/candidate_pool",
                    selectActionName="TONIGHT_SELECT_CANDIDATE",
                ),
                component("actions", "Row", children=_children("shuffleBtn", "backBtn")),
                component(
                    "shuffleBtn",
                    "Button",
                    label={"literalString": "Another batch"},
                    variant="ghost",
                    action={"name": "TONIGHT_REFRESH_CANDIDATES"},
                ),
                component(
                    "backBtn",
                    "Button",
                    label={"literalString": "← Back"},
                    variant="ghost",
                    action={"name": "TONIGHT_RESET"},
                ),
            ],
        ),
        data_update(
            TONIGHT,
            {
                "ui": tonight_ui("candidate"),
                "tonight": {"order_text": order_text, "skill_title": skill_title},
                "candidate_pool": _plain(candidates),
                "context": context,
            },
        ),
        begin_rendering(TONIGHT),
    ]


def program_tonight_result(context: ContextSignals, bundle: Any) -> list[Message]:
    return [
        surface_update(
            TONIGHT,
            [
                component("root", "Box", children=_children("resultHint", "ticket", "rethinkBtn")),
                component("resultHint", "Text", **_text("Your ending for tonight", "label")),
                component("ticket", "NightfallTicket", bundlePath="/bundle", uiPath="/ui"),
                component(
                    "rethinkBtn",
                    "Button",
                    label={"literalString": "← Start over"},
                    variant="ghost",
                    action={"name": "TONIGHT_RESET"},
                ),
            ],
        ),
        data_update(
            TONIGHT,
            {
                "ui": tonight_ui("result"),
                "bundle": bundle,
                "context": context,
            },
        ),
        begin_rendering(TONIGHT),
    ]


def program_discover(context: ContextSignals, shelf: Sequence[Any]) -> list[Message]:
    skills = _plain(shelf)
    return [
        surface_update(
            DISCOVER,
            [
                component("root", "Box", children=_children("head", "shelf", "gallery")),
                component("head", "Box", children=_children("title", "subtitle")),
                component("title", "Text", **_text("Discover", "h1")),
                component("subtitle", "Text", **_text("Where to tonight?", "subtitle")),
                component(
                    "shelf",
                    "SkillShelf",
                    itemsPath="/discover/skills",
                    heroPath="/discover/hero",
                    selectActionName="DISCOVER_SELECT_SKILL",
                ),
                component("gallery", "GalleryWall", itemsPath="/discover/gallery_refs", label="Candidate wall"),
            ],
        ),
        data_update(
            DISCOVER,
            {
                "discover": {
                    "stage": "library",
                    "skills": skills,
                    "hero": skills[0] if skills else None,
                    "gallery_refs": [],
                },
                "context": context,
            },
        ),
        begin_rendering(DISCOVER),
    ]


def program_sky(context: ContextSignals) -> list[Message]:
    return [
        surface_update(
            SKY,
            [
                component(
                    "root",
                    "SkyAtmosphere",
                    cityPath="/context/location/city_id",
                    pressurePath="/sky/pressure",
                    ambientPath="/sky/ambient",
                    backdropPath="/sky/backdrop_ref",
                    lightActionName="LIGHT_ON",
                ),
            ],
        ),
        data_update(
            SKY,
            {
                "context": context,
                "sky": {"pressure": "Quiet", "ambient": "", "backdrop_ref": "nf://texture/moon"},
            },
        ),
        begin_rendering(SKY),
    ]


def pocket_pulse(n: int = 14) -> list[float]:
    return [round(max(0.15, math.sin(i / 2) * 0.25 + 0.35), 3) for i in range(n)]


def program_pocket(context: ContextSignals) -> list[Message]:
    return [
        surface_update(
            POCKET,
            [
                component(
                    "root",
                    "PocketPanel",
                    pulsePath="/pocket/pulse",
                    ticketsPath="/pocket/tickets",
                    exportActionName="EXPORT_POCKET",
                ),
            ],
        ),
        data_update(
            POCKET,
            {
                "pocket": {"pulse": pocket_pulse(), "tickets": []},
                "context": context,
            },
        ),
        begin_rendering(POCKET),
    ]


def program_whispers(context: ContextSignals) -> list[Message]:
    return [
        surface_update(
            WHISPERS,
            [
                component("root", "Box", children=_children("wall", "composer")),
                component("wall", "WhisperWall", itemsPath="/whispers/items", symbolPath="/whispers/symbols"),
                component("composer", "WhisperComposer", submitActionName="WHISPER_SUBMIT"),
            ],
        ),
        data_update(
            WHISPERS,
            {
                "whispers": {"items": [], "symbols": WHISPER_SYMBOLS},
                "context": context,
            },
        ),
        begin_rendering(WHISPERS),
    ]


def program_radio(context: ContextSignals) -> list[Message]:
    return [
        surface_update(
            RADIO,
            [
                component(
                    "root",
                    "RadioStrip",
                    playingPath="/radio/playing",
                    narrativePath="/radio/narrative",
                    coverPath="/radio/cover_ref",
                    toggleActionName="RADIO_TOGGLE",
                ),
            ],
        ),
        data_update(
            RADIO,
            {
                "radio": {"playing": False, "narrative": "…", "cover_ref": ""},
                "context": context,
            },
        ),
        begin_rendering(RADIO),
    ]


def program_veil(context: ContextSignals) -> list[Message]:
    return [
        surface_update(
            VEIL,
            [
                component(
                    "root",
                    "VeilCollage",
                    collagePath="/veil/collage",
                    feedbackActionName="VEIL_FEEDBACK",
                    saveActionName="SAVE_VEIL_FRAME",
                ),
            ],
        ),
        data_update(
            VEIL,
            {
                "veil": {"collage": None},
                "context": context,
            },
        ),
        begin_rendering(VEIL),
    ]


def program_footprints(context: ContextSignals) -> list[Message]:
    return [
        surface_update(
            FOOTPRINTS,
            [
                component("root", "FootprintsPanel", fpPath="/fp", backActionName="BACK_TO_POCKET"),
            ],
        ),
        data_update(
            FOOTPRINTS,
            {
                "fp": {
                    "summary": {"focus_min": 0, "lights": 0, "whispers": 0, "places": 0},
                    "weekly_text": "No footprints this week yet...",
                },
                "context": context,
            },
        ),
        begin_rendering(FOOTPRINTS),
    ]
