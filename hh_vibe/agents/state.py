"""Conversation state for the chat orchestrator.

The backend keeps no session memory. The only persisted control state is
the ``metadata`` map of the most recent assistant message, which the client
sends back as part of the history. This module turns that untyped map into
a tagged union (``SubflowState``) and back, and defines the LangGraph state
the orchestrator graph passes between nodes.

Sub-flow states and the metadata keys that encode them:

    Idle                            no control keys
    Greeting                        isGreeting
    AwaitingGameDayProfession       awaitingGameDayProfession
    GameDayInProgress               isGameDay, profession, step, time, situation, isLastStep
    AwaitingCompareProfessions      awaitingCompareProfessions
    UncertainFlow                   uncertainFlow, uncertainFlowStep, questionType, isFreeForm
    AwaitingProfessionConfirmation  awaitingProfessionConfirmation, suggestedProfession,
                                    professionCard
    ClarificationInProgress         clarificationStep, professionForClarification,
                                    professionDescription, existingProfessionSlug
    ProfessionClarification         isProfessionClarification, professionToClarify

At most one sub-flow is active at a time. Informational keys such as
``currentProfession`` or ``showingSimilar`` do not start a sub-flow and
parse as Idle.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypedDict, Union

from hh_vibe.agents.intent import IntentResult
from hh_vibe.schemas.chat import Message, Persona, ProfessionCardRef, ResponseMessage, Stage
from hh_vibe.services.profession_catalog import ProfessionCatalog

logger = logging.getLogger(__name__)

# Number of soft questions in the uncertain-user flow.
UNCERTAIN_FLOW_STEPS = 7

# A game day ends after this many situations.
GAME_DAY_LAST_STEP = 6

GAME_DAY_START_TIME = "09:00"


class ClarificationStep(str, Enum):
    """Steps of the pre-generation clarification sequence, in order."""

    LEVEL = "level"
    WORK_FORMAT = "work_format"
    COMPANY_SIZE = "company_size"
    LOCATION = "location"
    SPECIALIZATION = "specialization"
    MOTIVATION = "motivation"


# =============================================================================
# Sub-flow states
# =============================================================================


@dataclass(frozen=True)
class Idle:
    """No sub-flow is active."""

    def to_metadata(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class Greeting:
    """The previous assistant message was the scenario-choice greeting."""

    def to_metadata(self) -> dict[str, Any]:
        return {"isGreeting": True}


@dataclass(frozen=True)
class AwaitingGameDayProfession:
    """Waiting for the name of the profession to play a game day in."""

    def to_metadata(self) -> dict[str, Any]:
        return {"awaitingGameDayProfession": True}


@dataclass(frozen=True)
class GameDayInProgress:
    """A game day is running.

    Attributes:
        profession: Profession being played.
        step: 1-based number of the situation just shown.
        time: Narrative time of the situation ("09:00").
        situation: Short description of the situation.
        is_last_step: True when the shown situation ends the day.
    """

    profession: str
    step: int = 1
    time: str = GAME_DAY_START_TIME
    situation: str = "start"
    is_last_step: bool = False

    def to_metadata(self) -> dict[str, Any]:
        return {
            "isGameDay": True,
            "profession": self.profession,
            "step": self.step,
            "time": self.time,
            "situation": self.situation,
            "isLastStep": self.is_last_step,
        }


@dataclass(frozen=True)
class AwaitingCompareProfessions:
    """Waiting for two comma-separated profession names."""

    def to_metadata(self) -> dict[str, Any]:
        return {"awaitingCompareProfessions": True}


@dataclass(frozen=True)
class UncertainFlow:
    """The uncertain-user soft-question sequence is running.

    Attributes:
        step: 0-based index of the question just asked.
        question_type: Declared type of that question; decides where the
            answer is stored in the persona.
        is_free_form: Whether the question expected a typed answer.
    """

    step: int = 0
    question_type: str = "general"
    is_free_form: bool = False

    @property
    def is_active(self) -> bool:
        return self.step < UNCERTAIN_FLOW_STEPS

    def to_metadata(self) -> dict[str, Any]:
        return {
            "uncertainFlow": True,
            "uncertainFlowStep": self.step,
            "questionType": self.question_type,
            "isFreeForm": self.is_free_form,
        }


@dataclass(frozen=True)
class AwaitingProfessionConfirmation:
    """A profession was suggested; waiting for "do you like it?".

    Attributes:
        suggested_profession: Name of the suggested profession.
        profession_card: Card shown with the suggestion.
    """

    suggested_profession: str
    profession_card: ProfessionCardRef | None = None

    def to_metadata(self) -> dict[str, Any]:
        metadata: dict[str, Any] = {
            "uncertainFlow": False,
            "awaitingProfessionConfirmation": True,
            "suggestedProfession": self.suggested_profession,
        }
        if self.profession_card is not None:
            metadata["professionCard"] = self.profession_card.model_dump(
                by_alias=True, exclude_none=True
            )
        return metadata


@dataclass(frozen=True)
class ClarificationInProgress:
    """The clarification sequence is waiting for the answer to ``step``.

    Attributes:
        step: Question that was just asked.
        profession: Profession the card will be generated for.
        profession_description: The user's own description, when known.
        existing_slug: Slug of a catalog card the search matched, if any.
    """

    step: ClarificationStep
    profession: str
    profession_description: str | None = None
    existing_slug: str | None = None

    def to_metadata(self) -> dict[str, Any]:
        metadata: dict[str, Any] = {
            "clarificationStep": self.step.value,
            "professionForClarification": self.profession,
            "professionDescription": self.profession_description,
        }
        if self.existing_slug:
            metadata["existingProfessionSlug"] = self.existing_slug
        return metadata


@dataclass(frozen=True)
class ProfessionClarification:
    """Waiting for the answer to "what exactly do you mean by X?"."""

    profession: str

    def to_metadata(self) -> dict[str, Any]:
        return {
            "isProfessionClarification": True,
            "professionToClarify": self.profession,
        }


SubflowState = Union[
    Idle,
    Greeting,
    AwaitingGameDayProfession,
    GameDayInProgress,
    AwaitingCompareProfessions,
    UncertainFlow,
    AwaitingProfessionConfirmation,
    ClarificationInProgress,
    ProfessionClarification,
]


# =============================================================================
# Parsing
# =============================================================================


def last_assistant_message(history: Sequence[Message]) -> Message | None:
    """Return the most recent assistant message, or None."""
    return next((m for m in reversed(history) if m.role == "assistant"), None)


def _int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _card(value: Any) -> ProfessionCardRef | None:
    if not isinstance(value, dict):
        return None
    try:
        return ProfessionCardRef.model_validate(value)
    except ValueError:
        return None


def parse_subflow_state(metadata: dict[str, Any] | None) -> SubflowState:
    """Decode the metadata of the last assistant message.

    Malformed or incomplete metadata (a flag without its required companion
    key) decodes as Idle rather than raising.

    Args:
        metadata: Metadata map, or None.

    Returns:
        The active sub-flow state.
    """
    if not metadata:
        return Idle()

    if metadata.get("isGreeting") is True:
        return Greeting()

    profession = _str(metadata.get("profession"))
    if metadata.get("isGameDay") is True and profession:
        return GameDayInProgress(
            profession=profession,
            step=_int(metadata.get("step"), 1) or 1,
            time=_str(metadata.get("time")) or GAME_DAY_START_TIME,
            situation=_str(metadata.get("situation")) or "start",
            is_last_step=metadata.get("isLastStep") is True,
        )

    if metadata.get("awaitingGameDayProfession") is True:
        return AwaitingGameDayProfession()

    if metadata.get("awaitingCompareProfessions") is True:
        return AwaitingCompareProfessions()

    suggested = _str(metadata.get("suggestedProfession"))
    if metadata.get("awaitingProfessionConfirmation") is True and suggested:
        return AwaitingProfessionConfirmation(
            suggested_profession=suggested,
            profession_card=_card(metadata.get("professionCard")),
        )

    if metadata.get("uncertainFlow") is True:
        return UncertainFlow(
            step=_int(metadata.get("uncertainFlowStep"), 0),
            question_type=_str(metadata.get("questionType")) or "general",
            is_free_form=metadata.get("isFreeForm") is True,
        )

    step_value = metadata.get("clarificationStep")
    clarified = _str(metadata.get("professionForClarification"))
    if step_value and clarified:
        try:
            step = ClarificationStep(step_value)
        except ValueError:
            logger.warning("Ignoring unknown clarification step %r", step_value)
        else:
            return ClarificationInProgress(
                step=step,
                profession=clarified,
                profession_description=_str(metadata.get("professionDescription")),
                existing_slug=_str(metadata.get("existingProfessionSlug")),
            )

    to_clarify = _str(metadata.get("professionToClarify"))
    if metadata.get("isProfessionClarification") is True and to_clarify:
        return ProfessionClarification(profession=to_clarify)

    return Idle()


def state_from_history(history: Sequence[Message]) -> SubflowState:
    """Decode the sub-flow state carried by the last assistant message."""
    last = last_assistant_message(history)
    return parse_subflow_state(last.metadata if last else None)


# =============================================================================
# LangGraph state
# =============================================================================


class ChatAgentState(TypedDict, total=False):
    """State passed between the orchestrator graph nodes.

    Attributes:
        message: The incoming user message.
        history: Conversation so far, oldest first.
        persona: Persona after this turn's updates.
        subflow: Sub-flow state decoded from the last assistant message.
        catalog: Stored cards, loaded once per turn.
        intent: Classification of the message (absent on the greeting turn).
        route: Name of the cascade route that handled the turn.
        response: Assistant message produced by the turn.
        stage: Conversation stage for the client.
    """

    message: str
    history: list[Message]
    persona: Persona
    subflow: SubflowState
    catalog: ProfessionCatalog
    intent: IntentResult
    route: str | None
    response: ResponseMessage | None
    stage: Stage
