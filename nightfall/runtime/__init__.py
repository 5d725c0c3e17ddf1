"""Skill execution runtime."""

from nightfall.runtime.skill_runtime import SkillRuntime

__all__ = ["SkillRuntime"]
