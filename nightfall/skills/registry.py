"""In-process skill registry."""

from collections.abc import Iterable, Iterator

from nightfall.errors import SkillNotFoundError
from nightfall.observability.logging import get_logger
from nightfall.skills.base import Skill

logger = get_logger(__name__)


class SkillRegistry:
    """Explicit map of skill id to skill.

    Registration order is preserved; it drives the discover shelf order.
    """

    def __init__(self, skills: Iterable[Skill] = ()) -> None:
        self._skills: dict[str, Skill] = {}
        for skill in skills:
            self.register(skill)

    def register(self, skill: Skill) -> None:
        if skill.id in self._skills:
            logger.warning("skill_replaced", skill_id=skill.id)
        self._skills[skill.id] = skill

    def unregister(self, skill_id: str) -> bool:
        return self._skills.pop(skill_id, None) is not None

    def get(self, skill_id: str) -> Skill | None:
        return self._skills.get(skill_id)

    def require(self, skill_id: str) -> Skill:
        skill = self._skills.get(skill_id)
        if skill is None:
            raise SkillNotFoundError(skill_id)
        return skill

    def has(self, skill_id: str) -> bool:
        return skill_id in self._skills

    def list_skills(self) -> list[Skill]:
        return list(self._skills.values())

    def ids(self) -> list[str]:
        return list(self._skills)

    def __iter__(self) -> Iterator[Skill]:
        return iter(self._skills.values())

    def __len__(self) -> int:
        return len(self._skills)
