"""Host effects, user actions and the per-action response."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from nightfall.protocol.messages import Message, dump_messages
from nightfall.skills.models import UIHints

Channel = Literal["tonight", "discover", "sky", "pocket", "veil", "footprints"]


class OpenWhispers(BaseModel):
    type: Literal["open_whispers"] = "open_whispers"


class CloseWhispers(BaseModel):
    type: Literal["close_whispers"] = "close_whispers"


class EnterFocus(BaseModel):
    type: Literal["enter_focus"] = "enter_focus"


class ExitFocus(BaseModel):
    type: Literal["exit_focus"] = "exit_focus"


class OpenExternal(BaseModel):
    type: Literal["open_external"] = "open_external"
    url: str


class SetChannel(BaseModel):
    type: Literal["set_channel"] = "set_channel"
    channel: Channel


class StyleHint(BaseModel):
    type: Literal["style_hint"] = "style_hint"
    hint: UIHints


HostEffect = Annotated[
    OpenWhispers | CloseWhispers | EnterFocus | ExitFocus | OpenExternal | SetChannel | StyleHint,
    Field(discriminator="type"),
]


class UserAction(BaseModel):
    """A named action from the renderer with its free-form payload."""

    name: str
    payload: dict[str, Any] = Field(default_factory=dict)

    def text(self, key: str) -> str:
        """Payload value as stripped text ("" when absent)."""
        value = self.payload.get(key)
        return "" if value is None else str(value).strip()


class EngineResponse(BaseModel):
    """Ordered messages to fold, then effects for the host to execute."""

    messages: list[Message] = Field(default_factory=list)
    effects: list[HostEffect] = Field(default_factory=list)
    session_id: str | None = None
    trace_id: str | None = None

    def dump(self) -> dict[str, Any]:
        return {
            "messages": dump_messages(self.messages),
            "effects": [e.model_dump(mode="json", exclude_none=True) for e in self.effects],
            "session_id": self.session_id,
            "trace_id": self.trace_id,
        }
