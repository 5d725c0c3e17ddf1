"""Deterministic image references for candidates and bundles.

References use the ``nf://`` scheme (``nf://cover/<seed>``,
``nf://photo/<ref>``...) and are resolved by the renderer. Cached place
photos from the session are preferred when photo lookups are enabled.
"""

import re
from collections.abc import Sequence

from nightfall.skills.models import CandidateItem, CuratorialBundle, MediaPack
from nightfall.toolbus.models import PlaceResult

GALLERY_REFS = 6

_TITLE_NOISE = re.compile(r"[^a-z0-9一-鿿]")


def normalize_title(title: str) -> str:
    return _TITLE_NOISE.sub("", (title or "").lower())


def photo_token(place: PlaceResult) -> str:
    ref = place.photo_url or place.photo_ref or ""
    if not ref:
        return ""
    return ref if ref.startswith("nf://") else f"nf://photo/{ref}"


def match_place_photo(title: str | None, places: Sequence[PlaceResult]) -> PlaceResult | None:
    """Place whose normalized title contains (or is contained in) ``title``."""
    target = normalize_title(title or "")
    if not target:
        return None
    best, best_score = None, 0
    for place in places:
        cand = normalize_title(place.title)
        if not cand:
            continue
        score = min(len(cand), len(target)) if cand in target or target in cand else 0
        if score > best_score:
            best, best_score = place, score
    return best


class MediaResolver:
    """Attach image refs to candidates and fill a bundle's media pack."""

    def __init__(self, photos_enabled: bool = False) -> None:
        self._photos_enabled = photos_enabled

    def _photos(self, places: Sequence[PlaceResult]) -> list[PlaceResult]:
        if not self._photos_enabled:
            return []
        return [p for p in places if p.photo_ref or p.photo_url]

    def attach_candidate_images(
        self, skill_id: str, candidates: Sequence[CandidateItem], places: Sequence[PlaceResult]
    ) -> list[CandidateItem]:
        photos = self._photos(places)
        out = []
        for idx, c in enumerate(candidates):
            if c.image_ref:
                out.append(c.model_copy())
                continue
            image_ref = f"nf://fragment/{skill_id}/{c.id or idx}"
            if photos:
                match = match_place_photo(c.title, photos) or photos[idx % len(photos)]
                image_ref = photo_token(match) or image_ref
            out.append(c.model_copy(update={"image_ref": image_ref}))
        return out

    def ensure_media_pack(
        self,
        bundle: CuratorialBundle,
        skill_id: str,
        places: Sequence[PlaceResult],
        candidates: Sequence[CandidateItem],
    ) -> CuratorialBundle:
        primary = bundle.primary_ending
        seed = skill_id or (primary.id or primary.title if primary else "") or "nightfall"
        photos = self._photos(places)

        def token(i: int) -> str:
            return photo_token(photos[i % len(photos)])

        pack = bundle.media_pack.model_copy() if bundle.media_pack else MediaPack()
        if not pack.cover_ref:
            pack.cover_ref = token(0) if photos else f"nf://cover/{seed}"
        if not pack.fragment_ref:
            pack.fragment_ref = token(1) if photos else f"nf://fragment/{seed}"
        pack.stamp_ref = pack.stamp_ref or f"nf://stamp/{seed}"
        pack.texture_ref = pack.texture_ref or f"nf://texture/{seed}"
        if not pack.gallery_refs:
            if photos:
                refs = [token(i) for i in range(min(GALLERY_REFS, len(photos)))]
            else:
                refs = [c.image_ref.strip() for c in candidates if c.image_ref and c.image_ref.strip()]
            pack.gallery_refs = [r for r in refs if r][:GALLERY_REFS]
        return bundle.model_copy(update={"media_pack": pack})
