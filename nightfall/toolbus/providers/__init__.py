"""Tool implementations: stub and network-backed."""

from nightfall.toolbus.providers.base import ToolImplementations
from nightfall.toolbus.providers.http import HttpTools
from nightfall.toolbus.providers.stub import StubTools

__all__ = [
    "HttpTools",
    "StubTools",
    "ToolImplementations",
]
