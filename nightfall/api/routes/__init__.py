"""API route registration."""

from fastapi import FastAPI

from nightfall.api.routes.audit import router as audit_router
from nightfall.api.routes.engine import router as engine_router
from nightfall.api.routes.health import router as health_router


def register_routes(app: FastAPI) -> None:
    app.include_router(engine_router, prefix="/api", tags=["Engine"])
    app.include_router(audit_router, prefix="/api", tags=["Audit"])
    app.include_router(health_router, tags=["Health"])
