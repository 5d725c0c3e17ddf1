"""Deterministic content generator built from tool seeds."""

from collections.abc import Sequence
from typing import Any

from nightfall.providers.content.base import ContentGenerationError, ContentGenerator
from nightfall.toolbus.models import PlaceResult

_CANNED_CANDIDATES: list[dict[str, str]] = [
    {"id": "c_lobby", "title": "Hotel lobby lounge", "tag": "stable", "desc": "Soft light, open late, nobody asks."},
    {"id": "c_cafe", "title": "Late cafe by the canal", "tag": "late", "desc": "Warm corner seats until midnight."},
    {"id": "c_books", "title": "Bookstore upper floor", "tag": "quiet", "desc": "Reading tables and low voices."},
    {"id": "c_walk", "title": "Riverside loop", "tag": "walk", "desc": "Twenty minutes, lit path, easy exit."},
    {"id": "c_bar", "title": "Listening bar", "tag": "unknown", "desc": "Vinyl and small plates, may be full."},
]


def _seed_candidate(place: PlaceResult) -> dict[str, Any]:
    return {
        "id": place.place_id,
        "title": place.title,
        "tag": place.tag or "place",
        "desc": f"Near you: {place.title}",
        "image_ref": place.photo_url or None,
    }


class MockContentGenerator(ContentGenerator):
    """Content generator for tests and offline development.

    Candidates come from the tool seeds (or a canned list rotated by the
    refresh variant). Bundles anchor on the selected or first seed, with
    Plan B on the next seed. ``candidates_response`` and
    ``bundle_response`` override the output verbatim so tests can feed
    malformed content through the policy chain.
    """

    def __init__(
        self,
        *,
        candidates_response: dict[str, Any] | None = None,
        bundle_response: dict[str, Any] | None = None,
        fail: bool = False,
    ) -> None:
        self.candidates_response = candidates_response
        self.bundle_response = bundle_response
        self.fail = fail
        self._call_history: list[dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """Return history of calls for testing assertions."""
        return self._call_history

    def _record(self, kind: str, prompt: str, **kwargs: Any) -> None:
        self._call_history.append({"kind": kind, "prompt": prompt, **kwargs})
        if self.fail:
            raise ContentGenerationError("mock generator configured to fail")

    async def generate_candidates(
        self,
        prompt: str,
        *,
        seeds: Sequence[PlaceResult] = (),
        variant: int = 0,
    ) -> dict[str, Any]:
        self._record("candidates", prompt, seeds=len(seeds), variant=variant)
        if self.candidates_response is not None:
            return self.candidates_response

        if seeds:
            pool = [_seed_candidate(p) for p in seeds]
        else:
            pool = [dict(c) for c in _CANNED_CANDIDATES]
        shift = variant % len(pool)
        return {"candidate_pool": pool[shift:] + pool[:shift]}

    async def generate_bundle(
        self,
        prompt: str,
        *,
        seeds: Sequence[PlaceResult] = (),
        selected_id: str | None = None,
    ) -> dict[str, Any]:
        self._record("bundle", prompt, seeds=len(seeds), selected_id=selected_id)
        if self.bundle_response is not None:
            return self.bundle_response

        places = list(seeds)
        anchor = next((p for p in places if p.place_id == selected_id), None)
        if anchor is None and places:
            anchor = places[0]
        backup = next((p for p in places if anchor is None or p.place_id != anchor.place_id), None)

        if anchor is not None:
            primary = {
                "id": f"primary_{anchor.place_id}",
                "title": anchor.title,
                "reason": "Close by and calm enough to settle in.",
                "checklist": ["Check there is a free seat", "Leave by closing time"],
                "risk_flags": ["hours_unverified"],
                "action": "NAVIGATE",
                "action_label": "Open Map",
                "payload": {"query": anchor.title},
                "place_id": anchor.place_id,
            }
        else:
            primary = {
                "id": "primary_focus",
                "title": "Twenty quiet minutes",
                "reason": "Stay put and close the night gently.",
                "checklist": ["Phone face down", "One task only"],
                "action": "START_FOCUS",
                "action_label": "Focus",
            }

        if backup is not None:
            plan_b = {
                "id": f"plan_b_{backup.place_id}",
                "title": backup.title,
                "reason": "Steadier fallback if the first spot is full.",
                "checklist": ["Go straight there if crowded"],
                "action": "NAVIGATE",
                "payload": {"query": backup.title},
                "place_id": backup.place_id,
            }
        else:
            plan_b = {
                "id": "plan_b_home",
                "title": "Head home early",
                "reason": "The safest close to the night.",
            }

        return {
            "primary_ending": primary,
            "plan_b": plan_b,
            "ambient_tokens": ["quiet", "warm"],
        }
