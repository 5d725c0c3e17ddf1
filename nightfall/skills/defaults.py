"""Default registry wiring."""

from nightfall.providers.content.base import ContentGenerator
from nightfall.skills.builtin import TonightComposer, WhispersNote
from nightfall.skills.catalogue import packaged_skills
from nightfall.skills.registry import SkillRegistry


def build_default_registry(generator: ContentGenerator) -> SkillRegistry:
    """Built-in skills first, then the packaged catalogue."""
    registry = SkillRegistry([TonightComposer(generator), WhispersNote()])
    for skill in packaged_skills(generator):
        registry.register(skill)
    return registry
