"""In-memory implementation of SessionStore."""

from datetime import UTC, datetime

from nightfall.session.models import Session
from nightfall.session.store import SessionStore


class InMemorySessionStore(SessionStore):
    """Dict-backed session storage for a single process."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    async def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    async def save(self, session: Session) -> str:
        session.last_activity_at = datetime.now(UTC)
        self._sessions[session.session_id] = session
        return session.session_id

    async def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)
