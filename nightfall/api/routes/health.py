"""Health check and metrics endpoints."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from nightfall.api.dependencies import OrchestratorDep, SettingsDep
from nightfall.api.models import HealthResponse
from nightfall.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(orchestrator: OrchestratorDep, settings: SettingsDep) -> HealthResponse:
    logger.debug("health_check_request")
    return HealthResponse(
        app=settings.app_name,
        skills=len(orchestrator.runtime.registry),
        tool_mode=settings.toolbus.mode,
    )


@router.get("/metrics")
async def get_metrics() -> Response:
    """Prometheus metrics in text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
