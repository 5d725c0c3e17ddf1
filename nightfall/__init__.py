"""Nightfall skill-orchestration runtime.

Routes a free-text request to a pluggable skill, runs the skill inside a
capability sandbox, hardens its output into a primary + Plan B bundle and
emits declarative surface-update messages for a decoupled renderer.
"""

__version__ = "0.3.0"
