"""Per-conversation session state owned by the orchestrator.

A session is created on first interaction for a session id and is
mutated in place by the orchestrator, the skill runtime and the policy
chain. One user is expected to drive a session serially.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from nightfall.audit.models import utc_now
from nightfall.skills.models import CandidateItem, CuratorialBundle
from nightfall.toolbus.models import PlaceResult

TicketType = Literal["OUTCOME", "FRAME", "WEEKLY"]

MAX_POCKET_TICKETS = 50
MAX_WHISPER_ITEMS = 50


class PocketTicket(BaseModel):
    """A saved keepsake shown on the pocket surface."""

    type: TicketType = "OUTCOME"
    date: str = "Tonight"
    title: str
    image_ref: str = ""


class WhisperItem(BaseModel):
    """An anonymous note on the whispers wall."""

    symbol: str = "◌"
    timestamp: str = ""
    content: str


class ShelfItem(BaseModel):
    """One skill card on the discover shelf."""

    id: str
    tag: str
    title: str
    desc: str = ""
    prompt: str = ""
    image_ref: str = ""


class CircleBucket(BaseModel):
    """Aggregated co-presence count for one grid/mode/time bucket."""

    count: int = 0
    first_ts: float
    last_ts: float


class Session(BaseModel):
    """Mutable state for one conversation."""

    session_id: str
    created_at: datetime = Field(default_factory=utc_now)
    last_activity_at: datetime = Field(default_factory=utc_now)

    # Tonight flow
    active_skill_id: str = ""
    last_order_text: str = ""
    candidate_variant: int = 0
    clarify_choice_map: dict[str, str] | None = None
    last_candidates: list[CandidateItem] = Field(default_factory=list)
    last_places: list[PlaceResult] = Field(default_factory=list)
    last_bundle: CuratorialBundle | None = None

    # Side surfaces
    discover_skills: list[ShelfItem] = Field(default_factory=list)
    discover_hero: ShelfItem | None = None
    pocket_tickets: list[PocketTicket] = Field(default_factory=list)
    whispers_items: list[WhisperItem] = Field(default_factory=list)
    radio_playing: bool = False
    radio_narrative: str = "…"

    # Policy bookkeeping
    surface_pushes: dict[str, float] = Field(
        default_factory=dict, description="Last allowed push per surface (epoch seconds)"
    )
    circle_buckets: dict[str, CircleBucket] = Field(default_factory=dict)
    rate_windows: dict[str, list[float]] = Field(
        default_factory=dict, description="Call timestamps per skill id and window"
    )

    def reset_tonight(self) -> None:
        """Return the tonight flow to the order stage."""
        self.last_order_text = ""
        self.active_skill_id = ""
        self.candidate_variant = 0
        self.clarify_choice_map = None

    def add_ticket(self, ticket: PocketTicket) -> None:
        """Newest first; the oldest tickets fall off past the cap."""
        self.pocket_tickets.insert(0, ticket)
        del self.pocket_tickets[MAX_POCKET_TICKETS:]

    def add_whisper(self, item: WhisperItem) -> None:
        self.whispers_items.append(item)
        del self.whispers_items[:-MAX_WHISPER_ITEMS]
