"""Skill routing."""

from nightfall.router.models import ClarifyDecision, Decision, RankedSkill, RouteDecision
from nightfall.router.ranker import SkillRanker, tokenize
from nightfall.router.router import SkillRouter

__all__ = [
    "ClarifyDecision",
    "Decision",
    "RankedSkill",
    "RouteDecision",
    "SkillRanker",
    "SkillRouter",
    "tokenize",
]
