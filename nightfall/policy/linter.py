"""Bundle linter: the final pass before a bundle is rendered.

A bundle missing either ending is discarded for a canned, context-derived
fallback. Otherwise every field is made non-empty and length-bounded.
"""

from typing import Any

from nightfall.audit.log import AuditLog
from nightfall.audit.models import PolicyViolationEvent
from nightfall.config.models.policy import LinterLimits
from nightfall.context import ContextSignals, TimeBand
from nightfall.policy.text import clip_text
from nightfall.skills.models import NAV_ACTIONS, CuratorialBundle, Ending, EndingAction

FALLBACK_TITLE = "A quiet corner"
FALLBACK_REASON = "Keep it simple. Stay light, then close the night."

_BAND_TOKENS = {
    TimeBand.LATE: "late",
    TimeBand.DINNER: "dinner",
    TimeBand.DAYTIME: "day",
    TimeBand.PRIME: "prime",
}


def default_action_label(action: str) -> str:
    if action == "PLAY":
        return "Play"
    if action == "START_FOCUS":
        return "Focus"
    return "Open Map"


def derive_tokens(context: ContextSignals) -> list[str]:
    """Ambient tokens from time band, mode and energy (at most three)."""
    tokens = [_BAND_TOKENS.get(context.time.time_band, "prime")]
    if context.user_state.mode:
        tokens.append(context.user_state.mode)
    if context.user_state.energy_band:
        tokens.append(context.user_state.energy_band)
    return tokens[:3]


def fallback_bundle(context: ContextSignals) -> CuratorialBundle:
    """Static-safe bundle used when generated content cannot be repaired."""
    return CuratorialBundle(
        primary_ending=Ending(
            id="fallback_primary",
            title=FALLBACK_TITLE,
            reason=FALLBACK_REASON,
            checklist=["Check the room feels right first", "Not right? Switch to Plan B in 10 min"],
            action="NAVIGATE",
            action_label="Open Map",
            payload={"query": FALLBACK_TITLE},
        ),
        plan_b=Ending(
            id="fallback_plan_b",
            title="Plan B",
            reason="A steadier way out, wrap up fast.",
            checklist=["Switch right away if crowded", "Keep it quiet and in control"],
            action="NAVIGATE",
            action_label="Open Map",
            payload={"query": "quiet place"},
        ),
        ambient_tokens=derive_tokens(context),
    )


class BundleLinter:
    """Guarantee every ending field is present, bounded and executable."""

    def __init__(self, limits: LinterLimits | None = None, audit: AuditLog | None = None) -> None:
        self._limits = limits or LinterLimits()
        self._audit = audit

    def _text(self, value: Any, fallback: str, max_chars: int) -> str:
        return clip_text(value, max_chars) or clip_text(fallback, max_chars)

    def _items(self, values: list[str], fallback: list[str], max_items: int) -> list[str]:
        max_chars = self._limits.checklist_item_chars
        items = [t for t in (clip_text(v, max_chars) for v in values) if t][:max_items]
        return items or list(fallback[:max_items])

    def _lint_ending(
        self,
        ending: Ending,
        *,
        title: str,
        reason: str,
        checklist: list[str],
        fallback_action: EndingAction,
    ) -> None:
        lim = self._limits
        ending.title = self._text(ending.title, title, lim.title_chars)
        ending.reason = self._text(ending.reason, reason, lim.reason_chars)
        ending.checklist = self._items(ending.checklist, checklist, lim.checklist_items)
        ending.risk_flags = self._items(ending.risk_flags, [], lim.risk_flags)
        ending.expires_at = clip_text(ending.expires_at, lim.expires_at_chars)
        ending.action = ending.action or fallback_action
        ending.action_label = self._text(
            ending.action_label, default_action_label(ending.action), lim.action_label_chars
        )
        if ending.action in NAV_ACTIONS and not ending.payload.get("query"):
            ending.payload = {**ending.payload, "query": ending.title}

    def apply(self, bundle: CuratorialBundle | None, context: ContextSignals) -> CuratorialBundle:
        if bundle is None or bundle.primary_ending is None or bundle.plan_b is None:
            if self._audit is not None:
                self._audit.push(
                    PolicyViolationEvent(
                        code="bundle_missing_core",
                        detail="primary_ending/plan_b missing; fallback applied",
                    )
                )
            return fallback_bundle(context)

        b = bundle.model_copy(deep=True)
        lim = self._limits
        self._lint_ending(
            b.primary_ending,
            title="Untitled",
            reason="Keep it simple.",
            checklist=["Check the place on arrival", "Not right? Switch to Plan B"],
            fallback_action="NAVIGATE",
        )
        self._lint_ending(
            b.plan_b,
            title="Plan B",
            reason="A steadier way out.",
            checklist=["Switch if crowded", "Keep it quiet and in control"],
            fallback_action=b.primary_ending.action or "NAVIGATE",
        )

        tokens = [t for t in (clip_text(t, lim.ambient_token_chars) for t in b.ambient_tokens) if t]
        b.ambient_tokens = tokens[: lim.ambient_tokens] or derive_tokens(context)
        return b
