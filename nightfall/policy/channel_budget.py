"""Per-surface update throttle."""

import time
from collections.abc import Callable

from nightfall.audit.log import AuditLog
from nightfall.audit.models import PolicyClipEvent
from nightfall.config.models.channels import ChannelBudgetConfig
from nightfall.session.models import Session


class ChannelBudget:
    """Drop surface pushes that arrive sooner than the surface's budget.

    Dropped pushes are not queued; each one is audited as a
    ``policy_clip`` on ``surface:<id>``.
    """

    def __init__(
        self,
        config: ChannelBudgetConfig | None = None,
        audit: AuditLog | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or ChannelBudgetConfig()
        self._audit = audit
        self._clock = clock

    def allow(self, session: Session, surface_id: str) -> bool:
        budget = self._config.budget_for(surface_id)
        if budget <= 0:
            return True
        now = self._clock()
        last = session.surface_pushes.get(surface_id)
        if last is None or now - last >= budget:
            session.surface_pushes[surface_id] = now
            return True
        if self._audit is not None:
            self._audit.push(
                PolicyClipEvent(
                    field=f"surface:{surface_id}",
                    before=1,
                    after=0,
                    note=f"surface_budget budget={budget:g}s",
                )
            )
        return False

    @staticmethod
    def bypass(session: Session, surface_id: str) -> None:
        """Make the next push to ``surface_id`` go through immediately."""
        session.surface_pushes.pop(surface_id, None)
