"""Build a fully wired Orchestrator from Settings."""

import time
from collections.abc import Callable

from nightfall.audit.log import AuditLog
from nightfall.audit.store import AuditSink
from nightfall.audit.stores.jsonl import JsonlAuditSink
from nightfall.audit.stores.sql import SqlAuditSink
from nightfall.config.models.observability import AuditConfig
from nightfall.config.settings import Settings
from nightfall.observability.logging import get_logger
from nightfall.orchestrator.engine import Orchestrator
from nightfall.orchestrator.media import MediaResolver
from nightfall.policy.chain import PolicyChain
from nightfall.policy.channel_budget import ChannelBudget
from nightfall.policy.circle import CircleSignals
from nightfall.policy.rate_limit import RateLimiter
from nightfall.providers.content.base import ContentGenerator
from nightfall.providers.content.mock import MockContentGenerator
from nightfall.router.router import SkillRouter
from nightfall.runtime.skill_runtime import SkillRuntime
from nightfall.session.store import SessionStore
from nightfall.session.stores.inmemory import InMemorySessionStore
from nightfall.skills.defaults import build_default_registry
from nightfall.skills.registry import SkillRegistry
from nightfall.toolbus.bus import ToolBus
from nightfall.toolbus.circuit import CircuitBreakerRegistry
from nightfall.toolbus.factory import build_recorder, resolve_tools
from nightfall.toolbus.models import ALL_TOOLS
from nightfall.toolbus.providers.base import ToolImplementations

logger = get_logger(__name__)


def build_audit_log(config: AuditConfig) -> AuditLog:
    sinks: list[AuditSink] = []
    if config.jsonl_path:
        sinks.append(JsonlAuditSink(config.jsonl_path))
    if config.database_url:
        sinks.append(SqlAuditSink(config.database_url, max_query_events=config.max_query_events))
    return AuditLog(ring_size=config.ring_size, sinks=sinks)


def build_orchestrator(
    settings: Settings,
    *,
    generator: ContentGenerator | None = None,
    registry: SkillRegistry | None = None,
    impl: ToolImplementations | None = None,
    sessions: SessionStore | None = None,
    audit: AuditLog | None = None,
    clock: Callable[[], float] = time.time,
) -> Orchestrator:
    """Wire every component from configuration.

    Args:
        settings: Root configuration
        generator: Content generator for packaged skills (mock by default)
        registry: Skill registry (the default catalogue when omitted)
        impl: Tool backend; resolved from ``settings.toolbus.mode`` when omitted
        sessions: Session storage (in-memory by default)
        audit: Audit log; built from ``settings.audit`` when omitted
        clock: Wall clock for rate limits, channel budgets and circle signals
    """
    if audit is None:
        audit = build_audit_log(settings.audit)
    if registry is None:
        registry = build_default_registry(generator or MockContentGenerator())
    if sessions is None:
        sessions = InMemorySessionStore()

    tb = settings.toolbus
    recorder = None
    if impl is None:
        breakers = CircuitBreakerRegistry(tb.circuit)
        impl = resolve_tools(tb, breakers)
        if tb.mode in ("record", "replay"):
            recorder = build_recorder(tb)
    tools = ToolBus(
        ALL_TOOLS,
        impl,
        audit,
        recorder=recorder,
        call_timeout_seconds=tb.call_timeout_seconds,
    )

    runtime = SkillRuntime(
        registry,
        tools,
        audit,
        policy=PolicyChain(settings.policy, audit),
        rate_limiter=RateLimiter(settings.rate_limit, audit, clock),
    )
    router = SkillRouter(registry, settings.router, fallback_skill_id=settings.fallback_skill_id)

    logger.info(
        "orchestrator_built",
        skills=len(registry),
        tool_mode=tb.mode,
        audit_sinks=len(audit.sinks),
    )
    return Orchestrator(
        runtime,
        router,
        sessions,
        tools=tools,
        channel_budget=ChannelBudget(settings.channels, audit, clock),
        circle=CircleSignals(settings.circle, clock),
        media=MediaResolver(photos_enabled=tb.google_places_api_key is not None),
    )
