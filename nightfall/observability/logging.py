"""structlog configuration.

JSON lines in production, coloured console output in development. Bound
context (trace_id, session_id from ``audit_context``) is merged into
every event. With redaction on, log events never carry:

- credentials (keys, tokens, auth headers, ``key=`` URL parameters)
- free text typed by the user (utterances, whispers), only its length
- precise coordinates, which are rounded to roughly a kilometre
"""

import logging
import re
import sys
from collections.abc import Mapping
from typing import Any, cast

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

REDACTED = "[REDACTED]"

CREDENTIAL_KEYS: frozenset[str] = frozenset(
    {
        "api_key",
        "apikey",
        "key",
        "token",
        "access_token",
        "refresh_token",
        "secret",
        "password",
        "authorization",
        "cookie",
    }
)
FREE_TEXT_KEYS: frozenset[str] = frozenset(
    {"utterance", "text", "content", "order_text", "note", "prompt"}
)
COORDINATE_KEYS: frozenset[str] = frozenset({"lat", "lng", "lon", "latitude", "longitude"})
COORDINATE_DECIMALS = 2

_URL_KEY_RE = re.compile(r"([?&](?:key|api_key|token)=)[^&\s\"']+", re.IGNORECASE)
_EMAIL_RE = re.compile(r"[\w.%+-]+@[\w.-]+\.[a-zA-Z]{2,}")


def _scrub(value: Any, key: str | None = None) -> Any:
    name = (key or "").lower()
    if name in CREDENTIAL_KEYS:
        return REDACTED
    if name in FREE_TEXT_KEYS and isinstance(value, str):
        return f"<{len(value)} chars>"
    if name in COORDINATE_KEYS and isinstance(value, int | float) and not isinstance(value, bool):
        return round(float(value), COORDINATE_DECIMALS)
    if isinstance(value, Mapping):
        return {k: _scrub(v, str(k)) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_scrub(v) for v in value]
    if isinstance(value, str):
        return _EMAIL_RE.sub("[EMAIL]", _URL_KEY_RE.sub(rf"\1{REDACTED}", value))
    return value


class Redactor:
    """structlog processor applying the redaction rules above.

    The ``event`` name itself is left untouched.
    """

    def __call__(self, _logger: WrappedLogger, _method_name: str, event_dict: EventDict) -> EventDict:
        return {k: v if k == "event" else _scrub(v, k) for k, v in event_dict.items()}


def _level_number(level: str) -> int:
    number = logging.getLevelName(level.upper())
    return number if isinstance(number, int) else logging.INFO


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    redact_pii: bool = True,
    app_name: str | None = None,
) -> None:
    """Configure structlog for the whole process.

    Args:
        level: Minimum log level name
        format: "json" for production, "console" for development
        redact_pii: Apply the redaction rules to every event
        app_name: Bound as ``app`` on every event when given
    """
    processors: list[Processor] = [structlog.contextvars.merge_contextvars]
    if app_name:
        processors.append(_bind_app(app_name))
    processors.append(structlog.processors.add_log_level)
    if redact_pii:
        processors.append(Redactor())
    processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if format == "json":
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def _bind_app(app_name: str) -> Processor:
    def processor(_logger: WrappedLogger, _method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", app_name)
        return event_dict

    return processor


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger named after the calling module (pass ``__name__``)."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
