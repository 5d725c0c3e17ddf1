"""Bundle policy: clip free text and list lengths to density budgets."""

from nightfall.audit.log import AuditLog
from nightfall.audit.models import PolicyClipEvent, PolicyViolationEvent
from nightfall.config.models.policy import BundleLimits
from nightfall.policy.text import clip_list, clip_text
from nightfall.skills.models import CuratorialBundle, Ending

PLAN_B_DEFAULT_LABEL = "Switch Plan B"


class BundlePolicy:
    """Clip a bundle's fields and guarantee Plan B carries an action.

    Every field that changes is reported as a ``policy_clip`` event with
    before/after lengths; a missing Plan B action is copied from the
    primary and reported as ``plan_b_missing_action``.
    """

    def __init__(self, limits: BundleLimits | None = None, audit: AuditLog | None = None) -> None:
        self._limits = limits or BundleLimits()
        self._audit = audit

    def _clip(self, field: str, before: int, after: int) -> None:
        if self._audit is not None and before != after:
            self._audit.push(PolicyClipEvent(field=field, before=before, after=after))

    def _clip_text(self, field: str, value: str, max_chars: int) -> str:
        clipped = clip_text(value, max_chars)
        if clipped != value:
            self._clip(field, len(value), len(clipped))
        return clipped

    def _clip_ending(self, name: str, ending: Ending) -> Ending:
        lim = self._limits
        ending.title = self._clip_text(f"{name}.title", ending.title, lim.title_chars)
        ending.reason = self._clip_text(f"{name}.reason", ending.reason, lim.reason_chars)
        for field, max_items in (("checklist", lim.checklist_items), ("risk_flags", lim.risk_flags)):
            items = getattr(ending, field)
            clipped = clip_list(items, max_items)
            self._clip(f"{name}.{field}", len(items), len(clipped))
            setattr(ending, field, clipped)
        return ending

    def apply(self, bundle: CuratorialBundle) -> CuratorialBundle:
        """Return a clipped copy of ``bundle``."""
        b = bundle.model_copy(deep=True)
        lim = self._limits

        if b.primary_ending is not None:
            self._clip_ending("primary", b.primary_ending)
        if b.plan_b is not None:
            self._clip_ending("plan_b", b.plan_b)

        tokens = clip_list(b.ambient_tokens, lim.ambient_tokens)
        self._clip("ambient_tokens", len(b.ambient_tokens), len(tokens))
        b.ambient_tokens = tokens

        if b.candidate_pool is not None:
            pool = clip_list(b.candidate_pool, lim.candidate_pool)
            self._clip("candidate_pool", len(b.candidate_pool), len(pool))
            b.candidate_pool = pool

        if b.media_pack is not None:
            gallery = clip_list(b.media_pack.gallery_refs, lim.gallery_refs)
            self._clip("media_pack.gallery_refs", len(b.media_pack.gallery_refs), len(gallery))
            b.media_pack.gallery_refs = gallery

        if b.primary_ending is not None and b.plan_b is not None:
            if b.plan_b.action is None:
                b.plan_b.action = b.primary_ending.action
                b.plan_b.action_label = b.primary_ending.action_label
                if self._audit is not None:
                    self._audit.push(
                        PolicyViolationEvent(
                            code="plan_b_missing_action",
                            detail="plan_b.action missing; copied from primary",
                        )
                    )
            if not b.plan_b.action_label:
                b.plan_b.action_label = PLAN_B_DEFAULT_LABEL

        return b
