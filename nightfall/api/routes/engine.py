"""Bootstrap and action endpoints."""

import uuid
from typing import Any

from fastapi import APIRouter, Request

from nightfall.api.dependencies import OrchestratorDep
from nightfall.api.models import ActionRequest, BootstrapRequest
from nightfall.observability.logging import get_logger
from nightfall.orchestrator.effects import UserAction
from nightfall.orchestrator.engine import new_trace_id

logger = get_logger(__name__)

router = APIRouter()


def _bind_request(request: Request, session_id: str) -> str:
    """Give the request a fresh trace id; error handlers read it back."""
    trace_id = new_trace_id()
    request.state.trace_id = trace_id
    request.state.session_id = session_id
    return trace_id


@router.post("/bootstrap")
async def bootstrap(
    body: BootstrapRequest, request: Request, orchestrator: OrchestratorDep
) -> dict[str, Any]:
    """Create the session if needed and return every surface's initial program."""
    session_id = body.session_id or uuid.uuid4().hex
    trace_id = _bind_request(request, session_id)
    response = await orchestrator.bootstrap(session_id, body.context, trace_id=trace_id)
    return response.dump()


@router.post("/action")
async def action(
    body: ActionRequest, request: Request, orchestrator: OrchestratorDep
) -> dict[str, Any]:
    trace_id = _bind_request(request, body.session_id)
    logger.debug("action_request", action=body.action, trace_id=trace_id)
    response = await orchestrator.dispatch(
        body.session_id,
        UserAction(name=body.action, payload=body.payload),
        body.context,
        trace_id=trace_id,
    )
    return response.dump()
