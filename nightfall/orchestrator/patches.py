"""Incremental data patches for the side surfaces.

Every patch goes through the channel budget; a dropped patch yields no
message at all.
"""

from typing import Any

from nightfall.context import ContextSignals, TimeBand
from nightfall.policy.channel_budget import ChannelBudget
from nightfall.policy.circle import CircleSignals
from nightfall.policy.text import clip_text
from nightfall.protocol.messages import Message, data_update
from nightfall.protocol.programs import DISCOVER, POCKET, RADIO, SKY, VEIL, WHISPERS
from nightfall.session.models import Session

POCKET_TICKETS = 14
WHISPER_ITEMS = 12
DISCOVER_GALLERY = 12

_BAND_LABELS = {
    TimeBand.LATE: "Late night",
    TimeBand.DINNER: "After dinner",
    TimeBand.DAYTIME: "Daytime",
}

_MODE_LABELS = {
    "recovery": "Low pressure",
    "explore": "Explore",
    "convergence": "Winding down",
    "night_flight": "Night flight",
    "light_talk": "Light talk",
    "immersion": "Immersion",
}

_ENERGY_LABELS = {"low": "Low battery", "high": "High energy"}


def veil_caption(context: ContextSignals, anchor: str = "", token: str = "") -> str:
    parts = [
        _BAND_LABELS.get(context.time.time_band, "Prime time"),
        _MODE_LABELS.get(context.user_state.mode, ""),
        _ENERGY_LABELS.get(context.user_state.energy_band, ""),
    ]
    prefix = " · ".join(p for p in parts if p) or "Nightfall"
    tag = f" #{token}" if token else ""
    if anchor:
        return f"{prefix}: {clip_text(anchor, 24)}{tag}"
    if token:
        return f"{prefix}{tag}"
    return f"{prefix} · Moon veil"


class SurfacePatcher:
    """Build budget-gated data patches from session state."""

    def __init__(self, budget: ChannelBudget, circle: CircleSignals) -> None:
        self._budget = budget
        self._circle = circle

    def _patch(self, session: Session, surface_id: str, contents: dict[str, Any]) -> list[Message]:
        if not self._budget.allow(session, surface_id):
            return []
        return [data_update(surface_id, contents)]

    def sky(self, session: Session, context: ContextSignals) -> list[Message]:
        if context.is_stealth:
            sky = {"pressure": "Stealth", "ambient": "Stealth mode", "backdrop_ref": "nf://texture/stealth"}
        else:
            signal = self._circle.get(
                session, context.location.grid_id, context.user_state.mode
            )
            if signal.visible and signal.intensity >= 3:
                pressure = "Warm"
            elif signal.visible:
                pressure = "Soft"
            else:
                pressure = "Quiet"
            sky = {"pressure": pressure, "ambient": signal.summary, "backdrop_ref": "nf://texture/moon"}
        return self._patch(session, SKY, {"sky": sky})

    def pocket(self, session: Session) -> list[Message]:
        tickets = session.pocket_tickets[:POCKET_TICKETS]
        return self._patch(session, POCKET, {"pocket": {"tickets": tickets}})

    def whispers(self, session: Session) -> list[Message]:
        items = session.whispers_items[-WHISPER_ITEMS:]
        return self._patch(session, WHISPERS, {"whispers": {"items": items}})

    def radio(self, session: Session) -> list[Message]:
        cover_ref = ""
        pack = session.last_bundle.media_pack if session.last_bundle else None
        if pack is not None:
            cover_ref = pack.fragment_ref or pack.cover_ref or ""
        if not cover_ref and session.last_candidates:
            cover_ref = session.last_candidates[0].image_ref or ""
        radio = {
            "playing": session.radio_playing,
            "narrative": session.radio_narrative,
            "cover_ref": cover_ref,
        }
        return self._patch(session, RADIO, {"radio": radio})

    def veil(self, session: Session, context: ContextSignals) -> list[Message]:
        bundle = session.last_bundle
        anchor = bundle.primary_ending.title if bundle and bundle.primary_ending else ""
        token = bundle.ambient_tokens[0] if bundle and bundle.ambient_tokens else ""
        pack = bundle.media_pack if bundle else None
        collage_id = f"veil_{context.time.now_ts.date().isoformat()}"
        cover_ref = (pack.cover_ref or pack.fragment_ref) if pack else None
        collage = {
            "collage_id": collage_id,
            "cover_ref": cover_ref or f"nf://cover/{collage_id}",
            "caption": veil_caption(context, anchor, token),
        }
        return self._patch(session, VEIL, {"veil": {"collage": collage}})

    def discover_gallery(self, session: Session) -> list[Message]:
        bundle = session.last_bundle
        gallery = bundle.media_pack.gallery_refs if bundle and bundle.media_pack else []
        if not gallery:
            return []
        discover = {
            "stage": "library",
            "skills": session.discover_skills,
            "hero": session.discover_hero,
            "gallery_refs": gallery[:DISCOVER_GALLERY],
        }
        return self._patch(session, DISCOVER, {"discover": discover})
