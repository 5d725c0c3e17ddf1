"""Candidate list policy."""

from nightfall.audit.log import AuditLog
from nightfall.audit.models import PolicyClipEvent
from nightfall.config.models.policy import CandidateLimits
from nightfall.policy.text import clip_text
from nightfall.skills.models import CandidateItem


class CandidatePolicy:
    """Cap the candidate count and bound every item's text fields."""

    def __init__(self, limits: CandidateLimits | None = None, audit: AuditLog | None = None) -> None:
        self._limits = limits or CandidateLimits()
        self._audit = audit

    def apply(self, items: list[CandidateItem]) -> list[CandidateItem]:
        lim = self._limits
        clipped = [
            item.model_copy(
                update={
                    "id": clip_text(item.id or f"C{idx + 1}", lim.id_chars),
                    "title": clip_text(item.title or "Untitled", lim.title_chars),
                    "tag": clip_text(item.tag or "EDITION", lim.tag_chars),
                    "desc": clip_text(item.desc or "", lim.desc_chars),
                }
            )
            for idx, item in enumerate(items[: lim.max_items])
        ]
        if self._audit is not None and len(items) > lim.max_items:
            self._audit.push(
                PolicyClipEvent(field="candidates", before=len(items), after=len(clipped))
            )
        return clipped
