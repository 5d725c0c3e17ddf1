"""Tests for session state and the in-memory session store."""

import pytest

from nightfall.session.models import (
    MAX_POCKET_TICKETS,
    MAX_WHISPER_ITEMS,
    PocketTicket,
    Session,
    WhisperItem,
)
from nightfall.session.stores.inmemory import InMemorySessionStore


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


class TestInMemorySessionStore:
    @pytest.mark.asyncio
    async def test_save_and_get(self, store):
        session = Session(session_id="s1", last_order_text="quiet")
        assert await store.save(session) == "s1"

        loaded = await store.get("s1")
        assert loaded is session
        assert loaded.last_order_text == "quiet"

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_get_or_create_persists(self, store):
        created = await store.get_or_create("s2")
        again = await store.get_or_create("s2")

        assert created is again
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_save_touches_last_activity(self, store):
        session = Session(session_id="s3")
        before = session.last_activity_at
        await store.save(session)
        assert session.last_activity_at >= before

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.get_or_create("s4")
        assert await store.delete("s4") is True
        assert await store.delete("s4") is False
        assert await store.get("s4") is None


class TestSessionModel:
    def test_reset_tonight(self):
        session = Session(
            session_id="s",
            active_skill_id="coffee-dongwang",
            last_order_text="cafe",
            candidate_variant=3,
            clarify_choice_map={"A": "coffee-dongwang"},
        )
        session.reset_tonight()

        assert session.active_skill_id == ""
        assert session.last_order_text == ""
        assert session.candidate_variant == 0
        assert session.clarify_choice_map is None

    def test_pocket_keeps_newest_tickets(self):
        session = Session(session_id="s")
        for i in range(MAX_POCKET_TICKETS + 5):
            session.add_ticket(PocketTicket(title=f"t{i}"))

        assert len(session.pocket_tickets) == MAX_POCKET_TICKETS
        assert session.pocket_tickets[0].title == f"t{MAX_POCKET_TICKETS + 4}"
        assert session.pocket_tickets[-1].title == "t5"

    def test_whispers_keep_latest_items(self):
        session = Session(session_id="s")
        for i in range(MAX_WHISPER_ITEMS + 3):
            session.add_whisper(WhisperItem(content=f"w{i}"))

        assert len(session.whispers_items) == MAX_WHISPER_ITEMS
        assert session.whispers_items[0].content == "w3"
        assert session.whispers_items[-1].content == f"w{MAX_WHISPER_ITEMS + 2}"

    def test_sessions_do_not_share_state(self):
        a, b = Session(session_id="a"), Session(session_id="b")
        a.rate_windows["x"] = [1.0]
        a.surface_pushes["sky"] = 1.0
        assert b.rate_windows == {}
        assert b.surface_pushes == {}
