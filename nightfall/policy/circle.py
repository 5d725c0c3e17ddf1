"""Aggregated co-presence ("circle") signal.

Counts are bucketed by grid, mode and time bucket and only become
visible once at least ``k_min`` pulses have accumulated, the bucket is
older than the delay, and it has been active within the TTL.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

from nightfall.config.models.channels import CircleConfig
from nightfall.session.models import CircleBucket, Session


@dataclass(frozen=True)
class CircleSignal:
    visible: bool
    count: int
    intensity: int
    summary: str


class CircleSignals:
    """Pulse and read co-presence buckets stored on the session."""

    def __init__(
        self, config: CircleConfig | None = None, clock: Callable[[], float] = time.time
    ) -> None:
        self._config = config or CircleConfig()
        self._clock = clock

    def _key(self, grid_id: str, mode: str, now: float) -> str:
        bucket = int(now // (self._config.bucket_minutes * 60))
        return f"{grid_id}:{mode}:{bucket}"

    def pulse(self, session: Session, grid_id: str, mode: str) -> str:
        now = self._clock()
        key = self._key(grid_id, mode, now)
        bucket = session.circle_buckets.get(key)
        if bucket is None:
            bucket = CircleBucket(first_ts=now, last_ts=now)
            session.circle_buckets[key] = bucket
        bucket.count += 1
        bucket.last_ts = now
        return key

    def get(self, session: Session, grid_id: str, mode: str) -> CircleSignal:
        cfg = self._config
        now = self._clock()
        bucket = session.circle_buckets.get(self._key(grid_id, mode, now))
        if bucket is None:
            return CircleSignal(False, 0, 0, f"Quiet (k≥{cfg.k_min})")

        visible = (
            bucket.count >= cfg.k_min
            and now - bucket.first_ts >= cfg.delay_seconds
            and now - bucket.last_ts <= cfg.ttl_seconds
        )
        if not visible:
            return CircleSignal(False, bucket.count, 0, f"Quiet (k≥{cfg.k_min})")
        intensity = min(5, max(1, round(bucket.count / cfg.k_min)))
        return CircleSignal(
            True, bucket.count, intensity, f"{bucket.count} lights on nearby (aggregate only)"
        )

    def cleanup(self, session: Session) -> int:
        """Drop buckets idle for longer than the TTL; return how many."""
        now = self._clock()
        stale = [
            k
            for k, b in session.circle_buckets.items()
            if now - b.last_ts > self._config.ttl_seconds
        ]
        for k in stale:
            del session.circle_buckets[k]
        return len(stale)
