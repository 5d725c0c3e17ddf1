"""Dependency injection for API routes.

The orchestrator and settings live on ``app.state`` and are set up by
the application factory; tests build an app around their own instances.
"""

from typing import Annotated

from fastapi import Depends, Request

from nightfall.config.settings import Settings
from nightfall.orchestrator.engine import Orchestrator


def get_orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


OrchestratorDep = Annotated[Orchestrator, Depends(get_orchestrator)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
