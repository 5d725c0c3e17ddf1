"""Router decisions."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class RankedSkill(BaseModel):
    id: str
    title: str
    description: str = ""
    score: float = Field(ge=0.0, le=1.0)
    reasons: list[str] = Field(default_factory=list)


class RouteDecision(BaseModel):
    """Run ``skill_id``."""

    kind: Literal["route"] = "route"
    skill_id: str
    reason: str
    confidence: float
    debug: dict[str, Any] = Field(default_factory=dict)


class ClarifyDecision(BaseModel):
    """Ask the user to pick; labels resolve through ``choice_map`` only."""

    kind: Literal["clarify"] = "clarify"
    choices: list[str]
    choice_map: dict[str, str]
    reason: str = "clarify_low_confidence"
    confidence: float = 0.0
    debug: dict[str, Any] = Field(default_factory=dict)


Decision = Annotated[RouteDecision | ClarifyDecision, Field(discriminator="kind")]
