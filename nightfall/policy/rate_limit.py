"""Sliding-window skill rate limiter.

Call timestamps live on the session (``Session.rate_windows``) so limits
are per session and per skill id. Lists are pruned lazily on each check.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from nightfall.audit.log import AuditLog
from nightfall.audit.models import PolicyViolationEvent
from nightfall.config.models.policy import RateLimitConfig
from nightfall.session.models import Session
from nightfall.skills.models import RateLimitSpec

RateWindow = Literal["minute", "night"]


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one rate limit check."""

    allowed: bool
    skill_id: str
    window: RateWindow | None = None
    limit: int = 0
    retry_after_seconds: float = 0.0


class RateLimiter:
    """Check per-minute and per-night budgets before a skill runs."""

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        audit: AuditLog | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or RateLimitConfig()
        self._audit = audit
        self._clock = clock

    def check(self, skill_id: str, spec: RateLimitSpec | None, session: Session) -> RateLimitResult:
        """Record the call and return ``allowed=True``, or refuse it.

        A refused call is not recorded and pushes one ``policy_violation``.
        """
        cfg = self._config
        now = self._clock()
        per_minute = cfg.default_per_minute
        per_night = cfg.default_per_night
        if spec is not None:
            if spec.per_minute is not None:
                per_minute = spec.per_minute
            if spec.per_night is not None:
                per_night = spec.per_night

        calls = session.rate_windows.get(skill_id, [])
        night = [ts for ts in calls if now - ts < cfg.night_window_seconds]
        minute = [ts for ts in night if now - ts < cfg.minute_window_seconds]
        session.rate_windows[skill_id] = night

        if len(minute) >= per_minute:
            oldest = minute[0] if minute else now
            return self._refuse(
                skill_id, "minute", per_minute, cfg.minute_window_seconds - (now - oldest)
            )
        if len(night) >= per_night:
            oldest = night[0] if night else now
            return self._refuse(
                skill_id, "night", per_night, cfg.night_window_seconds - (now - oldest)
            )

        night.append(now)
        return RateLimitResult(allowed=True, skill_id=skill_id)

    def _refuse(
        self, skill_id: str, window: RateWindow, limit: int, retry_after: float
    ) -> RateLimitResult:
        if self._audit is not None:
            field = "perMinute" if window == "minute" else "perNight"
            self._audit.push(
                PolicyViolationEvent(
                    code=f"rate_limit_{window}",
                    detail=f"{skill_id} exceeded {field}={limit}",
                )
            )
        return RateLimitResult(
            allowed=False,
            skill_id=skill_id,
            window=window,
            limit=limit,
            retry_after_seconds=max(0.0, retry_after),
        )
