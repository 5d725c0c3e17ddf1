"""FastAPI application factory.

Run with ``uvicorn --factory nightfall.api.app:create_app``.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nightfall.api.models import ErrorBody, ErrorResponse
from nightfall.api.routes import register_routes
from nightfall.config import get_settings
from nightfall.config.settings import Settings
from nightfall.errors import (
    CapabilityDeniedError,
    NightfallError,
    RateLimitedError,
    SkillNotFoundError,
    UpstreamUnavailableError,
)
from nightfall.observability.logging import get_logger, setup_logging
from nightfall.orchestrator.engine import Orchestrator
from nightfall.orchestrator.factory import build_orchestrator

logger = get_logger(__name__)

_STATUS_CODES: tuple[tuple[type[NightfallError], int], ...] = (
    (RateLimitedError, 429),
    (CapabilityDeniedError, 403),
    (SkillNotFoundError, 404),
    (UpstreamUnavailableError, 503),
)


def status_for(exc: NightfallError) -> int:
    return next((code for cls, code in _STATUS_CODES if isinstance(exc, cls)), 500)


def create_app(settings: Settings | None = None, orchestrator: Orchestrator | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Configuration; loaded with ``get_settings()`` when omitted
        orchestrator: Pre-built orchestrator; built from settings when omitted
    """
    settings = settings or get_settings()
    obs = settings.observability
    setup_logging(
        level=obs.log_level,
        format=obs.log_format,
        redact_pii=obs.redact_pii,
        app_name=settings.app_name,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("app_started", debug=settings.debug)
        yield
        await app.state.orchestrator.aclose()
        logger.info("app_stopped")

    app = FastAPI(
        title="Nightfall Orchestrator",
        description="Skill orchestration runtime for the Nightfall surfaces",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator or build_orchestrator(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=settings.api.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)
    register_routes(app)

    logger.info("app_created", debug=settings.debug, cors_origins=settings.api.cors_origins)
    return app


def _error_response(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorBody(code=code, message=message),
        session_id=getattr(request.state, "session_id", None),
        trace_id=getattr(request.state, "trace_id", None),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NightfallError)
    async def nightfall_error_handler(request: Request, exc: NightfallError) -> JSONResponse:
        status_code = status_for(exc)
        logger.warning(
            "api_error",
            error_code=exc.code,
            message=exc.message,
            status_code=status_code,
            path=request.url.path,
        )
        response = _error_response(request, status_code, exc.code, exc.message)
        if isinstance(exc, RateLimitedError) and exc.retry_after_seconds > 0:
            response.headers["Retry-After"] = str(max(1, round(exc.retry_after_seconds)))
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning("validation_error", errors=exc.errors(), path=request.url.path)
        return _error_response(request, 400, "invalid_request", "Request validation failed")

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unexpected_error", error=str(exc), error_type=type(exc).__name__, path=request.url.path
        )
        return _error_response(request, 500, "internal_error", "An unexpected error occurred")
