"""Policy chain and rate limit configuration models."""

from pydantic import BaseModel, Field


class BundleLimits(BaseModel):
    """Clip lengths applied by the bundle policy."""

    title_chars: int = Field(default=24, gt=1)
    reason_chars: int = Field(default=110, gt=1)
    checklist_items: int = Field(default=5, ge=0)
    risk_flags: int = Field(default=2, ge=0)
    ambient_tokens: int = Field(default=4, ge=0)
    candidate_pool: int = Field(default=18, ge=0)
    gallery_refs: int = Field(default=6, ge=0)


class LinterLimits(BaseModel):
    """Length bounds enforced by the bundle linter."""

    title_chars: int = Field(default=28, gt=1)
    reason_chars: int = Field(default=120, gt=1)
    checklist_items: int = Field(default=5, ge=1)
    checklist_item_chars: int = Field(default=60, gt=1)
    risk_flags: int = Field(default=2, ge=0)
    action_label_chars: int = Field(default=24, gt=1)
    ambient_token_chars: int = Field(default=18, gt=1)
    ambient_tokens: int = Field(default=4, ge=1)
    expires_at_chars: int = Field(default=32, gt=1)


class CandidateLimits(BaseModel):
    """Per-item bounds for candidate lists."""

    max_items: int = Field(default=18, ge=0)
    id_chars: int = Field(default=18, gt=1)
    title_chars: int = Field(default=28, gt=1)
    tag_chars: int = Field(default=16, gt=1)
    desc_chars: int = Field(default=140, gt=1)


class PolicyConfig(BaseModel):
    """Configuration for the post-generation policy chain."""

    bundle: BundleLimits = Field(default_factory=BundleLimits)
    linter: LinterLimits = Field(default_factory=LinterLimits)
    candidates: CandidateLimits = Field(default_factory=CandidateLimits)


class RateLimitConfig(BaseModel):
    """Defaults for skills whose manifest omits a rate limit."""

    default_per_minute: int = Field(default=60, gt=0)
    default_per_night: int = Field(default=9999, gt=0)
    minute_window_seconds: float = Field(default=60.0, gt=0)
    night_window_seconds: float = Field(default=12 * 60 * 60.0, gt=0)
