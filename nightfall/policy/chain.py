"""Post-generation policy chain in its fixed order."""

from collections.abc import Sequence

from nightfall.audit.log import AuditLog
from nightfall.config.models.policy import PolicyConfig
from nightfall.context import ContextSignals
from nightfall.policy.bundle import BundlePolicy
from nightfall.policy.candidates import CandidatePolicy
from nightfall.policy.linter import BundleLinter
from nightfall.policy.plan_b import PlanBHardener
from nightfall.skills.models import CandidateItem, CuratorialBundle


class PolicyChain:
    """Bundle policy, then Plan B hardening, then the linter.

    Running the chain on a bundle it already produced returns an equal
    bundle and pushes no further audit events.
    """

    def __init__(self, config: PolicyConfig | None = None, audit: AuditLog | None = None) -> None:
        config = config or PolicyConfig()
        self.bundle_policy = BundlePolicy(config.bundle, audit)
        self.plan_b = PlanBHardener(audit)
        self.linter = BundleLinter(config.linter, audit)
        self.candidates = CandidatePolicy(config.candidates, audit)

    def apply_bundle(
        self,
        bundle: CuratorialBundle,
        context: ContextSignals,
        candidates: Sequence[CandidateItem] | None = None,
    ) -> CuratorialBundle:
        b = self.bundle_policy.apply(bundle)
        b = self.plan_b.apply(b, candidates)
        return self.linter.apply(b, context)

    def apply_candidates(self, items: list[CandidateItem]) -> list[CandidateItem]:
        return self.candidates.apply(items)
