"""Runtime exception hierarchy.

All runtime errors inherit from NightfallError, which carries a stable
error code used by the API layer to build consistent error responses.
Content-quality problems are never raised: the policy chain repairs them
and records a policy_violation audit event instead.
"""


class NightfallError(Exception):
    """Base exception for all runtime errors."""

    code: str = "internal_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class CapabilityDeniedError(NightfallError):
    """Raised when a tool outside the configured allowlist is called."""

    code = "capability_denied"

    def __init__(self, tool: str) -> None:
        super().__init__(f"Tool not allowed: {tool}")
        self.tool = tool


class RateLimitedError(NightfallError):
    """Raised when a skill exceeds its per-minute or per-night budget."""

    code = "rate_limited"

    def __init__(self, skill_id: str, window: str, retry_after_seconds: float = 0.0) -> None:
        super().__init__(f"Rate limit: try later ({skill_id} exceeded {window} budget)")
        self.skill_id = skill_id
        self.window = window
        self.retry_after_seconds = retry_after_seconds


class SkillNotFoundError(NightfallError):
    """Raised when a skill id is not registered."""

    code = "skill_not_found"

    def __init__(self, skill_id: str) -> None:
        super().__init__(f"Skill not found: {skill_id}")
        self.skill_id = skill_id


class UpstreamUnavailableError(NightfallError):
    """Raised when an external dependency fails or is unreachable."""

    code = "upstream_unavailable"


class CircuitOpenError(UpstreamUnavailableError):
    """Raised when a provider's circuit breaker is open."""

    code = "circuit_open"

    def __init__(self, key: str) -> None:
        super().__init__(f"circuit_open:{key}")
        self.key = key


class ToolTimeoutError(UpstreamUnavailableError):
    """Raised when a tool call exceeds its timeout."""

    code = "tool_timeout"

    def __init__(self, tool: str, timeout_seconds: float) -> None:
        super().__init__(f"Tool '{tool}' timed out after {timeout_seconds}s")
        self.tool = tool
        self.timeout_seconds = timeout_seconds


# Errors that are terminal to one user action and surface to the caller
# as a generic "try again" condition.
TERMINAL_ERRORS: tuple[type[NightfallError], ...] = (
    CapabilityDeniedError,
    RateLimitedError,
    SkillNotFoundError,
)
