"""Audit tail and trace replay endpoints."""

from fastapi import APIRouter, Query

from nightfall.api.dependencies import OrchestratorDep, SettingsDep
from nightfall.api.models import AuditResponse, TraceResponse

router = APIRouter()


@router.get("/audit", response_model=AuditResponse)
async def audit_tail(
    orchestrator: OrchestratorDep,
    settings: SettingsDep,
    n: int | None = Query(default=None, ge=1),
) -> AuditResponse:
    """Most recent audit events, oldest first."""
    limit = min(n or settings.api.default_audit_tail, settings.audit.max_query_events)
    return AuditResponse(events=orchestrator.audit.tail(limit))


@router.get("/trace/{trace_id}", response_model=TraceResponse)
async def trace_events(trace_id: str, orchestrator: OrchestratorDep) -> TraceResponse:
    """Every event recorded for one action, in execution order."""
    return TraceResponse(trace_id=trace_id, events=orchestrator.audit.for_trace(trace_id))
