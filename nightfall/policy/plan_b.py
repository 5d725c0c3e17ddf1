"""Plan B reliability hardening.

A Plan B that points at the same place as the primary is no fallback at
all. When the two endings do not reference distinct places, the most
stable-looking candidate from the session's last pool replaces Plan B.
"""

from collections.abc import Sequence

from nightfall.audit.log import AuditLog
from nightfall.audit.models import PolicyClipEvent
from nightfall.policy.text import clip_text
from nightfall.skills.models import CandidateItem, CuratorialBundle

PLAN_B_LABEL = "Plan B"
TO_PLAN_B_LABEL = "To Plan B"
TITLE_CHARS = 24


def stability_score(candidate: CandidateItem) -> int:
    """Keyword heuristic: higher means more likely to still be open and calm."""
    tag = (candidate.tag or "").lower()
    title = (candidate.title or "").lower()
    score = 0
    if "stable" in tag or "hotel" in title or "lobby" in title:
        score += 3
    if "late" in tag or "late" in title:
        score += 2
    if "quiet" in tag or "quiet" in title:
        score += 1
    if "unknown" in tag:
        score -= 1
    return score


class PlanBHardener:
    """Swap a weak Plan B for the best-scoring alternative candidate."""

    def __init__(self, audit: AuditLog | None = None) -> None:
        self._audit = audit

    def apply(
        self, bundle: CuratorialBundle, candidates: Sequence[CandidateItem] | None = None
    ) -> CuratorialBundle:
        if bundle.primary_ending is None or bundle.plan_b is None:
            return bundle

        b = bundle.model_copy(deep=True)
        primary, plan_b = b.primary_ending, b.plan_b
        if plan_b.action is None:
            plan_b.action = primary.action
        if not plan_b.action_label:
            plan_b.action_label = PLAN_B_LABEL

        primary_id = primary.place_id
        if primary_id and plan_b.place_id and primary_id != plan_b.place_id:
            return b
        if not candidates:
            return b

        # sorted() is stable, so ties keep pool order
        scored = sorted(
            ((c, stability_score(c)) for c in candidates if c.id and c.id != primary_id),
            key=lambda pair: pair[1],
            reverse=True,
        )
        if not scored:
            return b
        best, score = scored[0]

        title = clip_text(best.title or plan_b.title or PLAN_B_LABEL, TITLE_CHARS)
        reason = f"Stable fallback: {best.tag or 'stable'}"
        action, label = plan_b.action, plan_b.action_label
        if action == "START_FOCUS":
            action, label = "NAVIGATE", TO_PLAN_B_LABEL

        unchanged = (
            plan_b.place_id == best.id
            and plan_b.title == title
            and plan_b.reason == reason
            and plan_b.action == action
        )
        if unchanged:
            return b

        before = len(plan_b.title)
        plan_b.place_id = best.id
        plan_b.title = title
        plan_b.reason = reason
        plan_b.action = action
        plan_b.action_label = label
        if self._audit is not None:
            self._audit.push(
                PolicyClipEvent(
                    field="plan_b",
                    before=before,
                    after=len(title),
                    note=f"planb_override id={best.id} score={score}",
                )
            )
        return b
