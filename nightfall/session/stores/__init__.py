"""Session store implementations."""

from nightfall.session.stores.inmemory import InMemorySessionStore

__all__ = ["InMemorySessionStore"]
