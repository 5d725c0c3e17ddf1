"""Router configuration models."""

from pydantic import BaseModel, Field


class RouterConfig(BaseModel):
    """Thresholds and weights for skill routing.

    The clarify thresholds are tuning decisions; keep them here rather than
    inlined so deployments can adjust them without code changes.
    """

    min_score: float = Field(
        default=0.42,
        ge=0.0,
        le=1.0,
        description="Clarify when the top ranked score is below this value",
    )
    min_gap: float = Field(
        default=0.12,
        ge=0.0,
        le=1.0,
        description="Clarify when top and second score differ by less than this",
    )
    short_utterance_chars: int = Field(
        default=6,
        ge=0,
        description="Utterances this short (after trimming) always clarify",
    )
    max_choices: int = Field(default=3, ge=1, description="Ranked clarify choices")
    label_max_chars: int = Field(default=24, ge=4, description="Clarify label length cap")
    semantic_weight: float = Field(default=0.75, ge=0.0, description="Cosine weight")
    keyword_boost: float = Field(
        default=0.2, ge=0.0, description="Boost when the utterance names the skill id"
    )
    rule_confidence: float = Field(default=0.88, ge=0.0, le=1.0)
    fallback_confidence: float = Field(default=0.35, ge=0.0, le=1.0)
    fallback_skill_ids: list[str] = Field(
        default_factory=lambda: ["chill-place-picker", "tonight_composer"],
        description="Static fallback ids, first registered one wins",
    )
    fallback_label: str = Field(
        default="Steady · safest pick",
        description="Label of the conservative clarify choice",
    )
