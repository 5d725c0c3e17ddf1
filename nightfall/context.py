"""Ambient context snapshot passed to every skill invocation."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from nightfall.audit.models import utc_now


class TimeBand(str, Enum):
    """Coarse evening phases derived from the local hour."""

    DAYTIME = "daytime"
    DINNER = "dinner"
    PRIME = "prime"
    LATE = "late"


class MotionState(str, Enum):
    """Device motion classification."""

    DRIVING = "driving"
    WALKING = "walking"
    STILL = "still"
    UNKNOWN = "unknown"


def time_band_for_hour(hour: int) -> TimeBand:
    """Map a local hour (0-23) to its time band."""
    if 19 <= hour < 21:
        return TimeBand.DINNER
    if 21 <= hour < 23:
        return TimeBand.PRIME
    if hour >= 23 or hour < 5:
        return TimeBand.LATE
    return TimeBand.DAYTIME


def _parse_ts(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return None


class TimeSignals(BaseModel):
    """When the request happens.

    ``time_band`` is always derived from the hour of ``now_ts`` when the
    caller does not supply one.
    """

    model_config = ConfigDict(frozen=True)

    now_ts: datetime = Field(default_factory=utc_now)
    time_band: TimeBand = Field(default=TimeBand.PRIME)
    weekday: int = Field(default=1, ge=1, le=7)
    local_holiday_flag: bool = False

    @model_validator(mode="before")
    @classmethod
    def derive_time_band(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("time_band") is None:
            ts = _parse_ts(data.get("now_ts")) or utc_now()
            data = {**data, "now_ts": ts, "time_band": time_band_for_hour(ts.hour)}
            data.setdefault("weekday", ts.isoweekday())
        return data


class LocationSignals(BaseModel):
    """Coarse location; raw coordinates are optional and never logged."""

    model_config = ConfigDict(frozen=True)

    grid_id: str = "grid_1km_unknown"
    city_id: str = "Shanghai"
    place_context: Literal["home", "work", "unknown"] = "unknown"
    location_quality: Literal["ok", "low", "none"] = "ok"
    lat: float | None = None
    lng: float | None = None


class MobilitySignals(BaseModel):
    """How the user is moving."""

    model_config = ConfigDict(frozen=True)

    motion_state: MotionState = MotionState.STILL
    transport_mode: Literal["car", "transit", "walk"] = "walk"
    eta_min: int = Field(default=0, ge=0)


class UserState(BaseModel):
    """Self-reported mood and privacy posture."""

    model_config = ConfigDict(frozen=True)

    mode: Literal[
        "immersion", "convergence", "recovery", "explore", "night_flight", "light_talk"
    ] = "immersion"
    energy_band: Literal["low", "mid", "high"] = "mid"
    social_temp: int = Field(default=1, ge=0, le=3)
    stealth: bool = Field(default=False, description="Hide visibility-sensitive features")


class ContextSignals(BaseModel):
    """Immutable per-request snapshot of time, location, mobility and user state."""

    model_config = ConfigDict(frozen=True)

    time: TimeSignals = Field(default_factory=lambda: TimeSignals.model_validate({}))
    location: LocationSignals = Field(default_factory=LocationSignals)
    mobility: MobilitySignals = Field(default_factory=MobilitySignals)
    user_state: UserState = Field(default_factory=UserState)

    @property
    def is_driving(self) -> bool:
        return self.mobility.motion_state == MotionState.DRIVING

    @property
    def is_stealth(self) -> bool:
        return self.user_state.stealth
