"""Generative content providers."""

from nightfall.providers.content.base import ContentGenerationError, ContentGenerator
from nightfall.providers.content.mock import MockContentGenerator

__all__ = ["ContentGenerationError", "ContentGenerator", "MockContentGenerator"]
