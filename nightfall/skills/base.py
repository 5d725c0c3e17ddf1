"""Skill abstract interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from nightfall.context import ContextSignals
from nightfall.session.models import Session
from nightfall.skills.models import SkillManifest, SkillRequest, SkillResult
from nightfall.toolbus.bus import ToolBus


@dataclass
class SkillContext:
    """What a skill may read: the request's context snapshot and the session."""

    context: ContextSignals
    session: Session


class Skill(ABC):
    """A pluggable, manifest-declared content generator.

    The runtime inspects nothing beyond ``manifest`` and ``run``; a skill
    can only reach external systems through the ``tools`` bus it is given,
    which is scoped to ``manifest.permissions.tools``.
    """

    manifest: SkillManifest

    @property
    def id(self) -> str:
        return self.manifest.id

    @property
    def search_text(self) -> str:
        """Text indexed by the router's ranker."""
        m = self.manifest
        parts = [m.title, m.description, m.default_prompt, m.shelf_tag, m.id]
        return " ".join(p for p in parts if p)

    @abstractmethod
    async def run(self, request: SkillRequest, ctx: SkillContext, tools: ToolBus) -> SkillResult:
        """Execute one invocation."""
        pass
