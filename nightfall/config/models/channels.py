"""Surface throttling and co-presence configuration models."""

from pydantic import BaseModel, Field


def _default_budgets() -> dict[str, float]:
    return {
        "tonight": 0.0,
        "discover": 2.0,
        "sky": 8.0,
        "pocket": 30.0,
        "whispers": 60.0,
        "radio": 5.0,
        "veil": 12 * 60 * 60.0,
        "footprints": 60.0,
    }


class ChannelBudgetConfig(BaseModel):
    """Minimum seconds between pushes per surface (0 = always allowed)."""

    budgets: dict[str, float] = Field(default_factory=_default_budgets)
    default_seconds: float = Field(default=10.0, ge=0)

    def budget_for(self, surface_id: str) -> float:
        """Return the re-push interval for a surface."""
        return self.budgets.get(surface_id, self.default_seconds)


class CircleConfig(BaseModel):
    """Aggregated co-presence signal settings."""

    bucket_minutes: int = Field(default=15, gt=0)
    k_min: int = Field(default=3, gt=0, description="Minimum count before visible")
    delay_seconds: int = Field(default=120, ge=0)
    ttl_seconds: int = Field(default=7200, gt=0)
