"""ContentGenerator abstract interface.

A generator turns an assembled prompt plus tool seeds into raw JSON-like
data. Output is untrusted: skills parse it leniently and the policy
chain repairs whatever is left.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from nightfall.toolbus.models import PlaceResult


class ContentGenerationError(Exception):
    """The generator could not produce any output."""


class ContentGenerator(ABC):
    """Abstract interface for the generative content provider."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def generate_candidates(
        self,
        prompt: str,
        *,
        seeds: Sequence[PlaceResult] = (),
        variant: int = 0,
    ) -> dict[str, Any]:
        """Return ``{"candidate_pool": [...], "ui": {...}?}``."""
        pass

    @abstractmethod
    async def generate_bundle(
        self,
        prompt: str,
        *,
        seeds: Sequence[PlaceResult] = (),
        selected_id: str | None = None,
    ) -> dict[str, Any]:
        """Return a CuratorialBundle-shaped dict."""
        pass
