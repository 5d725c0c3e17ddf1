"""Skills implemented in code rather than from a packaged brief."""

from nightfall.skills.builtin.tonight_composer import TonightComposer
from nightfall.skills.builtin.whispers_note import WhispersNote

__all__ = ["TonightComposer", "WhispersNote"]
