"""Chat API request/response schemas.

The chat client owns the whole session: it sends the full message history
and the current persona with every request and stores what comes back.
Field names are camelCase on the wire (``isUncertain``, ``vacanciesCount``)
and snake_case in Python.

Message metadata stays an untyped dict on the wire; ``hh_vibe.agents.state``
parses it into a typed sub-flow state.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MessageRole = Literal["user", "assistant", "system"]
MessageType = Literal["text", "buttons", "cards", "questions"]
Stage = Literal["initial", "clarifying", "exploring", "showing_results"]

# Upper bound on a single chat message; longer input is rejected with 400.
MAX_MESSAGE_LENGTH = 4000


class _WireModel(BaseModel):
    """Base for camelCase wire models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ProfessionCardRef(_WireModel):
    """Reference to a profession card shown in a chat message.

    Attributes:
        slug: Normalized profession key (see hh_vibe.services.slug).
        profession: Display name.
        level: Seniority label (Junior / Middle / Senior).
        company: Company label used when the card was generated.
        image: First card image, if any.
        is_virtual: True when the card is not in the card store yet.
        vacancies_count: Live vacancy count for market-derived cards.
    """

    slug: str
    profession: str
    level: str = "Middle"
    company: str = "IT-компания"
    image: str | None = None
    is_virtual: bool | None = None
    vacancies_count: int | None = None


class Persona(_WireModel):
    """Accumulated facts about the user, carried across turns.

    Scalar fields default to None; consumers apply their own defaults
    ("no experience" for experience, "any" for location and company size).
    """

    experience: str | None = None
    interests: list[str] | None = None
    current_role: str | None = None
    goals: list[str] | None = None
    is_uncertain: bool | None = None
    skills: list[str] | None = None
    company_size: str | None = None
    location: str | None = None
    specialization: str | None = None
    work_style: str | None = None
    values: str | None = None
    motivation: str | None = None


class Message(_WireModel):
    """One entry of the conversation history.

    The client also sends ``id`` and ``timestamp``; they are ignored.
    """

    role: MessageRole
    type: MessageType = "text"
    content: str = ""
    buttons: list[str] | None = None
    cards: list[ProfessionCardRef] | None = None
    metadata: dict[str, Any] | None = None


class ResponseMessage(_WireModel):
    """Assistant message produced by one chat turn.

    Attributes:
        type: Rendering hint for the client.
        content: Display text (markdown allowed). Never empty.
        buttons: Quick-reply buttons.
        cards: Profession cards to render.
        metadata: Sub-flow state for the next turn.
    """

    type: MessageType = "text"
    content: str
    buttons: list[str] | None = None
    cards: list[ProfessionCardRef] | None = None
    metadata: dict[str, Any] | None = None


class ChatRequest(_WireModel):
    """Request body for POST /chat.

    Attributes:
        message: The user's message text (a typed reply or a button label).
        history: Full conversation so far, oldest first.
        persona: Persona returned by the previous turn.
    """

    message: str = Field(default="", max_length=MAX_MESSAGE_LENGTH)
    history: list[Message] = Field(default_factory=list)
    persona: Persona | None = None

    @field_validator("message", mode="before")
    @classmethod
    def strip_message(cls, v: Any) -> Any:
        """Strip whitespace from the message."""
        if isinstance(v, str):
            return v.strip()
        return v


class ChatResponse(_WireModel):
    """Response body for POST /chat."""

    message: ResponseMessage
    persona: Persona
    stage: Stage
