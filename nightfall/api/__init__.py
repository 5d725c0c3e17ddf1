"""Thin HTTP wiring over the orchestrator."""
