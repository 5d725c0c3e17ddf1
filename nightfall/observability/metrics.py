"""Prometheus metrics for the Nightfall runtime.

Provides counters and histograms for skill invocations, tool calls,
circuit breakers, policy events and routing decisions.
"""

from prometheus_client import Counter, Histogram

# Skill metrics
SKILL_INVOCATIONS = Counter(
    "nightfall_skill_invocations_total",
    "Total number of skill invocations",
    labelnames=["skill_id", "stage", "outcome"],
)

SKILL_LATENCY = Histogram(
    "nightfall_skill_latency_seconds",
    "Skill invocation latency in seconds",
    labelnames=["skill_id", "stage"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Tool metrics
TOOL_CALLS = Counter(
    "nightfall_tool_calls_total",
    "Total number of tool bus calls",
    labelnames=["tool", "outcome"],
)

TOOL_LATENCY = Histogram(
    "nightfall_tool_latency_seconds",
    "Tool call latency in seconds",
    labelnames=["tool"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

CIRCUIT_OPENED = Counter(
    "nightfall_circuit_opened_total",
    "Number of times a provider circuit breaker opened",
    labelnames=["key"],
)

# Policy metrics
POLICY_EVENTS = Counter(
    "nightfall_policy_events_total",
    "Policy clips and violations recorded in the audit log",
    labelnames=["kind", "code"],
)

# Routing metrics
ROUTE_DECISIONS = Counter(
    "nightfall_route_decisions_total",
    "Router decisions by reason",
    labelnames=["kind", "reason"],
)
