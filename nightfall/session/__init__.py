"""Session state and storage."""

from nightfall.session.models import (
    CircleBucket,
    PocketTicket,
    Session,
    ShelfItem,
    WhisperItem,
)
from nightfall.session.store import SessionStore
from nightfall.session.stores import InMemorySessionStore

__all__ = [
    "CircleBucket",
    "InMemorySessionStore",
    "PocketTicket",
    "Session",
    "SessionStore",
    "ShelfItem",
    "WhisperItem",
]
