"""SessionStore abstract interface."""

from abc import ABC, abstractmethod

from nightfall.session.models import Session


class SessionStore(ABC):
    """Abstract interface for session storage."""

    @abstractmethod
    async def get(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        pass

    @abstractmethod
    async def save(self, session: Session) -> str:
        """Save a session, returning its ID."""
        pass

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Delete a session."""
        pass

    async def get_or_create(self, session_id: str) -> Session:
        """Get a session, creating and saving an empty one when absent."""
        session = await self.get(session_id)
        if session is None:
            session = Session(session_id=session_id)
            await self.save(session)
        return session
