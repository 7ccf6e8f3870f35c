"""Pydantic schemas for the chat and profession APIs."""

from hh_vibe.schemas.chat import (
    ChatRequest,
    ChatResponse,
    Message,
    Persona,
    ProfessionCardRef,
    ResponseMessage,
    Stage,
)
from hh_vibe.schemas.profession import (
    GenerateCardRequest,
    ProfessionCard,
    ProfessionSummary,
)

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "GenerateCardRequest",
    "Message",
    "Persona",
    "ProfessionCard",
    "ProfessionCardRef",
    "ProfessionSummary",
    "ResponseMessage",
    "Stage",
]
