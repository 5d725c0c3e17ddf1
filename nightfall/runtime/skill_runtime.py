"""Skill runtime: executes one skill invocation inside its sandbox.

Steps, in order:
1. Look up the skill (SkillNotFoundError, nothing audited)
2. Check the skill's rate limits (RateLimitedError, skill never runs)
3. Audit skill_start
4. Scope a tool bus to exactly the manifest's tool allowlist
5. Run the skill
6. Pass bundles and candidates through the policy chain
7. Drop patches that target surfaces the manifest does not allow
8. Audit skill_end

Errors from step 5 onward are audited as skill_end(ok=False) and
re-raised; this layer never swallows them.
"""

import time

from nightfall.audit.log import AuditLog
from nightfall.audit.models import PolicyViolationEvent, SkillEndEvent, SkillStartEvent
from nightfall.context import ContextSignals
from nightfall.errors import RateLimitedError
from nightfall.observability.logging import get_logger
from nightfall.observability.metrics import SKILL_INVOCATIONS, SKILL_LATENCY
from nightfall.policy.chain import PolicyChain
from nightfall.policy.rate_limit import RateLimiter
from nightfall.protocol.messages import Message
from nightfall.session.models import Session
from nightfall.skills.base import SkillContext
from nightfall.skills.models import (
    BundleResult,
    CandidatesResult,
    EmptyResult,
    PatchesResult,
    SkillRequest,
    SkillResult,
    summarize_result,
)
from nightfall.skills.registry import SkillRegistry
from nightfall.toolbus.bus import ToolBus

logger = get_logger(__name__)

ERROR_SUMMARY_CHARS = 120


class SkillRuntime:
    """Run skills with rate limiting, capability confinement and policy."""

    def __init__(
        self,
        registry: SkillRegistry,
        tools: ToolBus,
        audit: AuditLog,
        *,
        policy: PolicyChain | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize the runtime.

        Args:
            registry: Skills available to run
            tools: Root tool bus; each invocation gets a copy scoped to the
                skill's declared tools
            audit: Audit log shared with the policy chain and tool bus
            policy: Post-generation policy chain
            rate_limiter: Per-session skill rate limiter
        """
        self._registry = registry
        self._tools = tools
        self._audit = audit
        self._policy = policy or PolicyChain(audit=audit)
        self._limiter = rate_limiter or RateLimiter(audit=audit)

    @property
    def registry(self) -> SkillRegistry:
        return self._registry

    @property
    def audit(self) -> AuditLog:
        return self._audit

    @property
    def policy(self) -> PolicyChain:
        return self._policy

    async def run(
        self,
        skill_id: str,
        request: SkillRequest,
        context: ContextSignals,
        session: Session,
    ) -> SkillResult:
        skill = self._registry.require(skill_id)
        manifest = skill.manifest

        limit = self._limiter.check(skill_id, manifest.rate_limit, session)
        if not limit.allowed:
            SKILL_INVOCATIONS.labels(skill_id=skill_id, stage=request.stage, outcome="rate_limited").inc()
            logger.warning("skill_rate_limited", skill_id=skill_id, window=limit.window)
            raise RateLimitedError(skill_id, limit.window or "minute", limit.retry_after_seconds)

        self._audit.push(
            SkillStartEvent(
                skill_id=skill_id,
                intent=request.intent,
                stage=request.stage,
                request_summary=request.summary(),
            )
        )
        tools = self._tools.scoped(manifest.permissions.tools, session)
        start = time.perf_counter()

        try:
            result = await skill.run(request, SkillContext(context=context, session=session), tools)
            result = self._apply_policy(result, manifest.allowed_surfaces, context, session)
        except Exception as e:
            duration = time.perf_counter() - start
            self._audit.push(
                SkillEndEvent(
                    skill_id=skill_id,
                    ok=False,
                    duration_ms=int(duration * 1000),
                    output_summary=(str(e) or type(e).__name__)[:ERROR_SUMMARY_CHARS],
                )
            )
            SKILL_INVOCATIONS.labels(skill_id=skill_id, stage=request.stage, outcome="error").inc()
            SKILL_LATENCY.labels(skill_id=skill_id, stage=request.stage).observe(duration)
            logger.warning(
                "skill_failed", skill_id=skill_id, stage=request.stage, error_type=type(e).__name__
            )
            raise

        duration = time.perf_counter() - start
        self._audit.push(
            SkillEndEvent(
                skill_id=skill_id,
                ok=True,
                duration_ms=int(duration * 1000),
                output_summary=summarize_result(result),
            )
        )
        SKILL_INVOCATIONS.labels(skill_id=skill_id, stage=request.stage, outcome="ok").inc()
        SKILL_LATENCY.labels(skill_id=skill_id, stage=request.stage).observe(duration)
        return result

    def _apply_policy(
        self,
        result: SkillResult,
        allowed_surfaces: tuple[str, ...],
        context: ContextSignals,
        session: Session,
    ) -> SkillResult:
        match result:
            case BundleResult(bundle=bundle):
                hardened = self._policy.apply_bundle(
                    bundle, context, session.last_candidates or None
                )
                return result.model_copy(update={"bundle": hardened})
            case CandidatesResult(candidates=items):
                return result.model_copy(update={"candidates": self._policy.apply_candidates(items)})
            case PatchesResult(patches=patches):
                return result.model_copy(
                    update={"patches": self._filter_patches(patches, allowed_surfaces)}
                )
            case EmptyResult():
                return result

    def _filter_patches(self, patches: list[Message], allowed: tuple[str, ...]) -> list[Message]:
        kept: list[Message] = []
        for msg in patches:
            if msg.surface_id in allowed:
                kept.append(msg)
                continue
            self._audit.push(
                PolicyViolationEvent(
                    code="surface_not_allowed",
                    detail=f"surfaceId={msg.surface_id} blocked",
                )
            )
        return kept
