"""Deterministic post-generation policies and request throttles."""

from nightfall.policy.bundle import BundlePolicy
from nightfall.policy.candidates import CandidatePolicy
from nightfall.policy.chain import PolicyChain
from nightfall.policy.channel_budget import ChannelBudget
from nightfall.policy.circle import CircleSignal, CircleSignals
from nightfall.policy.linter import BundleLinter, fallback_bundle
from nightfall.policy.plan_b import PlanBHardener, stability_score
from nightfall.policy.rate_limit import RateLimiter, RateLimitResult

__all__ = [
    "BundleLinter",
    "BundlePolicy",
    "CandidatePolicy",
    "ChannelBudget",
    "CircleSignal",
    "CircleSignals",
    "PlanBHardener",
    "PolicyChain",
    "RateLimitResult",
    "RateLimiter",
    "fallback_bundle",
    "stability_score",
]
