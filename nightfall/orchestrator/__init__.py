"""Session state machine turning user actions into protocol messages."""

from nightfall.orchestrator.effects import EngineResponse, HostEffect, UserAction
from nightfall.orchestrator.engine import Orchestrator
from nightfall.orchestrator.factory import build_audit_log, build_orchestrator

__all__ = [
    "EngineResponse",
    "HostEffect",
    "Orchestrator",
    "UserAction",
    "build_audit_log",
    "build_orchestrator",
]
